"""
Document Decoding Base Module.

A decoder turns a paginated document into page texts. Extraction never
talks to a PDF library directly; it consumes the ``PageSource`` a decoder
returns, or an ``InMemoryPages`` built from text obtained elsewhere.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Iterator, List, Union

PathLike = Union[str, Path]


class PageSource(ABC):
    """Sized, re-iterable sequence of page texts."""

    @abstractmethod
    def __len__(self) -> int:
        pass

    @abstractmethod
    def __iter__(self) -> Iterator[str]:
        pass


class InMemoryPages(PageSource):
    """
    Pages that were already extracted as text.

    Example:
        >>> pages = InMemoryPages(["PEDIDO Nº: 1001", "TOTAL DO PEDIDO"])
        >>> len(pages)
        2
    """

    def __init__(self, pages: Iterable[str]) -> None:
        self.pages: List[str] = [page or '' for page in pages]

    def __len__(self) -> int:
        return len(self.pages)

    def __iter__(self) -> Iterator[str]:
        return iter(self.pages)

    def __repr__(self) -> str:
        return f"InMemoryPages(pages={len(self.pages)})"


class DecodedPages(PageSource):
    """
    Lazily decoded pages of one file.

    The page count is read up front; page text is decoded only while
    iterating, so an extraction that stops early never decodes the rest.
    """

    def __init__(self, decoder: 'DocumentDecoder', filepath: PathLike) -> None:
        self.decoder = decoder
        self.filepath = filepath
        self._count = decoder.page_count(filepath)

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[str]:
        return self.decoder.iter_pages(self.filepath)

    def __repr__(self) -> str:
        return f"DecodedPages({Path(self.filepath).name}, pages={self._count}, backend={self.decoder.name})"


class DocumentDecoder(ABC):
    """
    Abstract base class for document decoders.

    Attributes:
        name: Backend name used in configuration and logs
    """

    name: str = ""

    @abstractmethod
    def page_count(self, filepath: PathLike) -> int:
        """
        Count the pages of a document.

        Raises:
            CorruptedFileError: If the document cannot be opened.
        """
        pass

    @abstractmethod
    def iter_pages(self, filepath: PathLike) -> Iterator[str]:
        """
        Yield the text of each page in order.

        Raises:
            CorruptedFileError: If the document cannot be opened.
        """
        pass

    def pages(self, filepath: PathLike) -> DecodedPages:
        """Wrap ``filepath`` as a lazily decoded ``PageSource``."""
        return DecodedPages(self, filepath)
