"""
PDF Decoding Backends Module.

Text extraction from digital PDFs using:
    - PyMuPDF (fitz): fast, preferred
    - pdfplumber: pure Python fallback

Scanned, image-only PDFs yield empty page texts; OCR is out of scope.
"""

from pathlib import Path
from typing import Iterator, Optional

from config import get_config
from order_ingest.decoding.base import DocumentDecoder, PathLike
from order_ingest.utils.exceptions import CorruptedFileError, DocumentDecodingError
from order_ingest.utils.logger import get_logger

logger = get_logger(__name__)


class PyMuPDFDecoder(DocumentDecoder):
    """
    Decoder backed by PyMuPDF.

    Raises:
        DocumentDecodingError: On construction, if PyMuPDF is not installed.
    """

    name = "pymupdf"

    def __init__(self) -> None:
        try:
            import fitz  # PyMuPDF
        except ImportError as e:
            raise DocumentDecodingError(self.name, "PyMuPDF not installed. Install with: pip install PyMuPDF") from e
        self._fitz = fitz

    def _open(self, filepath: PathLike):
        try:
            return self._fitz.open(str(filepath))
        except Exception as e:
            logger.error(f"PyMuPDF could not open {Path(filepath).name}: {e}")
            raise CorruptedFileError(str(filepath), str(e))

    def page_count(self, filepath: PathLike) -> int:
        with self._open(filepath) as doc:
            return doc.page_count

    def iter_pages(self, filepath: PathLike) -> Iterator[str]:
        with self._open(filepath) as doc:
            for page in doc:
                yield page.get_text("text") or ''


class PdfPlumberDecoder(DocumentDecoder):
    """
    Decoder backed by pdfplumber.

    Raises:
        DocumentDecodingError: On construction, if pdfplumber is not installed.
    """

    name = "pdfplumber"

    def __init__(self) -> None:
        try:
            import pdfplumber
        except ImportError as e:
            raise DocumentDecodingError(self.name, "pdfplumber not installed. Install with: pip install pdfplumber") from e
        self._pdfplumber = pdfplumber

    def _open(self, filepath: PathLike):
        try:
            return self._pdfplumber.open(str(filepath))
        except Exception as e:
            logger.error(f"pdfplumber could not open {Path(filepath).name}: {e}")
            raise CorruptedFileError(str(filepath), str(e))

    def page_count(self, filepath: PathLike) -> int:
        with self._open(filepath) as pdf:
            return len(pdf.pages)

    def iter_pages(self, filepath: PathLike) -> Iterator[str]:
        with self._open(filepath) as pdf:
            for page in pdf.pages:
                yield page.extract_text() or ''
                # Release cached layout objects of pages already read
                page.close()


BACKENDS = {
    PyMuPDFDecoder.name: PyMuPDFDecoder,
    PdfPlumberDecoder.name: PdfPlumberDecoder,
}

# Probe order for "auto"
AUTO_ORDER = (PyMuPDFDecoder.name, PdfPlumberDecoder.name)


def get_decoder(backend: Optional[str] = None) -> DocumentDecoder:
    """
    Create a document decoder.

    Args:
        backend: "pymupdf", "pdfplumber" or "auto" (defaults to
            ``input.pdf.backend``). "auto" uses the first installed backend.

    Returns:
        A ready decoder.

    Raises:
        DocumentDecodingError: If the backend is unknown or unavailable.

    Example:
        >>> decoder = get_decoder("auto")
        >>> pages = decoder.pages("PEDIDO_138768.pdf")
    """
    backend = (backend or get_config("input.pdf.backend", "auto")).lower()

    if backend == "auto":
        reasons = []
        for name in AUTO_ORDER:
            try:
                decoder = BACKENDS[name]()
            except DocumentDecodingError as e:
                logger.debug(f"Backend {name} unavailable: {e.details.get('reason')}")
                reasons.append(str(e.details.get('reason')))
                continue
            logger.debug(f"Using {name} for document decoding")
            return decoder
        raise DocumentDecodingError("auto", "; ".join(reasons))

    if backend not in BACKENDS:
        raise DocumentDecodingError(
            backend, f"Unknown backend. Choose one of: auto, {', '.join(BACKENDS)}"
        )
    return BACKENDS[backend]()
