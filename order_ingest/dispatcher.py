"""
Format Dispatcher Module.

Single entry point for turning ERP exports into canonical orders. The
dispatcher detects the input shape from the file extension and delegates
to the matching extractor.

Usage:
    from order_ingest import FormatDispatcher

    dispatcher = FormatDispatcher()
    order = dispatcher.parse("PEDIDO_138768.xlsx")

    # Process batch
    results = dispatcher.parse_batch("./pedidos/")
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from order_ingest.decoding import DocumentDecoder, InMemoryPages, get_decoder
from order_ingest.extractors import (
    DelimitedTextExtractor,
    DocumentTextExtractor,
    OrderExtractor,
    SpreadsheetExtractor,
)
from order_ingest.model.order import ParsedOrder
from order_ingest.utils.exceptions import (
    CorruptedFileError,
    ExtractionCancelledError,
    FileNotFoundError,
    InputError,
    OrderIngestError,
    UnsupportedFileTypeError,
)
from order_ingest.utils.helpers import get_file_extension
from order_ingest.utils.logger import get_logger

logger = get_logger(__name__)


DOCUMENT_OPTIONS = ('early_stop', 'cancel_event', 'on_progress', 'max_pages')


@dataclass
class DispatchResult:
    """
    Outcome of parsing one file in a batch.

    Attributes:
        filepath: File that was parsed
        source_format: Detected format, or 'unknown'
        order: Parsed order when successful
        success: Whether parsing succeeded
        error: Error message if parsing failed
    """
    filepath: str
    source_format: str
    order: Optional[ParsedOrder] = None
    success: bool = True
    error: Optional[str] = None

    def __repr__(self) -> str:
        return (
            f"DispatchResult(file='{Path(self.filepath).name}', "
            f"format='{self.source_format}', "
            f"success={self.success})"
        )


class FormatDispatcher:
    """
    Routes input files to the extractor for their format.

    Attributes:
        extractors: Format name to extractor
        decoder: Document decoder (created on first PDF when not given)

    Example:
        >>> dispatcher = FormatDispatcher()
        >>> order = dispatcher.parse("PEDIDO_138768.pdf", early_stop=True)
        >>> print(order.quality.level)
    """

    def __init__(
        self,
        decoder: Optional[DocumentDecoder] = None,
        extractors: Optional[Iterable[OrderExtractor]] = None
    ) -> None:
        if extractors is None:
            extractors = [
                SpreadsheetExtractor(),
                DelimitedTextExtractor(),
                DocumentTextExtractor(),
            ]
        self.extractors: Dict[str, OrderExtractor] = {
            extractor.format_name: extractor for extractor in extractors
        }
        self._decoder = decoder

        logger.info(f"FormatDispatcher initialized with extensions: {sorted(self.supported_extensions)}")

    @property
    def supported_extensions(self) -> List[str]:
        return sorted(
            ext for extractor in self.extractors.values() for ext in extractor.extensions
        )

    @property
    def decoder(self) -> DocumentDecoder:
        if self._decoder is None:
            self._decoder = get_decoder()
        return self._decoder

    def detect_format(self, filepath: Union[str, Path]) -> str:
        """
        Detect the input format from the file extension.

        Returns:
            Format name: 'spreadsheet', 'delimited' or 'document'.

        Raises:
            UnsupportedFileTypeError: If no extractor handles the extension.
        """
        for name, extractor in self.extractors.items():
            if extractor.can_handle(filepath):
                logger.debug(f"Detected {name} file: {filepath}")
                return name
        raise UnsupportedFileTypeError(get_file_extension(filepath), self.supported_extensions)

    def validate_file(self, filepath: Union[str, Path]) -> Path:
        """
        Validate that a file exists, is supported and is not empty.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            InputError: If the path is not a regular file.
            UnsupportedFileTypeError: If the file type is not supported.
            CorruptedFileError: If the file is empty.
        """
        path = Path(filepath)

        if not path.exists():
            raise FileNotFoundError(str(filepath))

        if not path.is_file():
            raise InputError(f"Path is not a file: {filepath}")

        self.detect_format(path)

        if path.stat().st_size == 0:
            raise CorruptedFileError(str(filepath), "File is empty")

        logger.debug(f"File validated: {filepath}")
        return path

    def parse(self, filepath: Union[str, Path], **options: Any) -> ParsedOrder:
        """
        Parse one file into a canonical order.

        Args:
            filepath: Path to the ERP export.
            **options: Document options (``early_stop``, ``cancel_event``,
                ``on_progress``, ``max_pages``); ignored for other formats.

        Returns:
            ParsedOrder with ``source_format`` and ``source_file`` set.

        Raises:
            OrderIngestError: On invalid input, malformed structure or
                cancellation.
        """
        path = self.validate_file(filepath)
        source_format = self.detect_format(path)
        logger.info(f"Parsing {path.name} as {source_format}")

        try:
            if source_format == DocumentTextExtractor.format_name:
                order = self._parse_document(path, options)
            else:
                order = self.extractors[source_format].extract(path)
        except ExtractionCancelledError:
            raise
        except OrderIngestError as e:
            logger.error(f"Failed to parse {path.name}: {e}")
            raise

        order.source_format = source_format
        order.source_file = str(path)
        return order

    def _parse_document(self, path: Path, options: Dict[str, Any]) -> ParsedOrder:
        document_options = {k: v for k, v in options.items() if k in DOCUMENT_OPTIONS}
        pages = self.decoder.pages(path)
        logger.debug(f"Decoding {path.name} with {self.decoder.name} ({len(pages)} page(s))")
        return self.extractors[DocumentTextExtractor.format_name].extract(pages, **document_options)

    def parse_pages(self, pages: Iterable[str], **options: Any) -> ParsedOrder:
        """
        Parse already extracted page texts.

        Args:
            pages: Page texts in order.
            **options: Document options, as for ``parse``.
        """
        if not isinstance(pages, InMemoryPages):
            pages = InMemoryPages(pages)
        document_options = {k: v for k, v in options.items() if k in DOCUMENT_OPTIONS}
        order = self.extractors[DocumentTextExtractor.format_name].extract(pages, **document_options)
        order.source_format = DocumentTextExtractor.format_name
        return order

    def parse_batch(
        self,
        directory: Union[str, Path],
        recursive: bool = False,
        **options: Any
    ) -> List[DispatchResult]:
        """
        Parse every supported file in a directory.

        A failing file is logged and recorded; the batch continues. A
        cancellation stops the whole batch.

        Returns:
            One DispatchResult per file, in path order.
        """
        directory = Path(directory)

        if not directory.exists():
            raise FileNotFoundError(str(directory))

        if not directory.is_dir():
            raise InputError(f"Path is not a directory: {directory}")

        pattern = "**/*" if recursive else "*"
        files = sorted(
            path for path in directory.glob(pattern)
            if path.is_file() and get_file_extension(path) in self.supported_extensions
        )

        logger.info(f"Found {len(files)} files to process in {directory}")

        results = []
        for i, filepath in enumerate(files, 1):
            logger.info(f"Processing file {i}/{len(files)}: {filepath.name}")
            try:
                order = self.parse(filepath, **options)
            except ExtractionCancelledError:
                raise
            except OrderIngestError as e:
                results.append(DispatchResult(
                    filepath=str(filepath),
                    source_format=self._format_or_unknown(filepath),
                    success=False,
                    error=str(e),
                ))
                continue
            results.append(DispatchResult(
                filepath=str(filepath),
                source_format=order.source_format,
                order=order,
            ))

        successful = sum(1 for r in results if r.success)
        logger.info(f"Batch processing complete: {successful} successful, {len(results) - successful} failed")

        return results

    def _format_or_unknown(self, filepath: Path) -> str:
        try:
            return self.detect_format(filepath)
        except UnsupportedFileTypeError:
            return 'unknown'
