"""
Custom Exceptions Module.

Exceptions raised by the order ingestion library. A missing field is never
an exception: extractors leave the default value in place and the gap is
reported through ``ExtractionQuality``. Only structural problems,
unreadable files and caller-requested cancellation are raised.

Exception Hierarchy:
    OrderIngestError (base)
    ├── InputError
    │   ├── UnsupportedFileTypeError
    │   ├── FileNotFoundError
    │   └── CorruptedFileError
    ├── StructuralError
    ├── DocumentDecodingError
    └── ExtractionCancelledError
"""


class OrderIngestError(Exception):
    """
    Base exception for all order ingestion errors.

    Attributes:
        message: Human-readable error message.
        details: Optional dictionary with additional error details.
    """

    def __init__(self, message: str, details: dict = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# INPUT ERRORS
# =============================================================================

class InputError(OrderIngestError):
    """Base exception for input handling errors."""
    pass


class UnsupportedFileTypeError(InputError):
    """
    Raised when no extractor handles the given file type.

    Example:
        >>> raise UnsupportedFileTypeError(".doc", [".xlsx", ".txt", ".pdf"])
    """

    def __init__(self, file_type: str, supported_types: list):
        message = f"Unsupported file type: '{file_type}'"
        details = {"file_type": file_type, "supported_types": supported_types}
        super().__init__(message, details)


class FileNotFoundError(InputError):
    """Raised when an input file cannot be found."""

    def __init__(self, filepath: str):
        message = f"File not found: {filepath}"
        details = {"filepath": filepath}
        super().__init__(message, details)


class CorruptedFileError(InputError):
    """Raised when a file is empty or cannot be opened by its reader."""

    def __init__(self, filepath: str, reason: str = None):
        message = f"Corrupted or unreadable file: {filepath}"
        details = {"filepath": filepath, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# EXTRACTION ERRORS
# =============================================================================

class StructuralError(OrderIngestError):
    """
    Raised when the input does not have the shape an extractor requires.

    Always fatal: no partial order is returned alongside it.

    Example:
        >>> raise StructuralError("malformed input: expected header and items sheets",
        ...                       {"sheets": 1})
    """
    pass


class DocumentDecodingError(OrderIngestError):
    """Raised when no document-decoding backend can be used."""

    def __init__(self, backend: str, reason: str = None):
        message = f"Document decoding backend not available: {backend}"
        details = {"backend": backend, "reason": reason}
        super().__init__(message, details)


class ExtractionCancelledError(OrderIngestError):
    """
    Raised when the caller's cancellation signal fires between pages.

    Deliberately not a StructuralError so callers can tell "user cancelled"
    apart from "document malformed".
    """

    def __init__(self, page_index: int, total_pages: int):
        message = "Extraction cancelled by caller"
        details = {"page_index": page_index, "total_pages": total_pages}
        super().__init__(message, details)


__all__ = [
    'OrderIngestError',
    'InputError',
    'UnsupportedFileTypeError',
    'FileNotFoundError',
    'CorruptedFileError',
    'StructuralError',
    'DocumentDecodingError',
    'ExtractionCancelledError',
]
