"""
Helper Utilities Module.

Small, generic functions shared by the extractors and the dispatcher.

Functions:
    - get_file_extension: Extract file extension safely
    - fold_accents: Lowercase and strip diacritics for keyword matching
    - read_text: Read a text export trying several encodings
"""

import unicodedata
from pathlib import Path
from typing import Iterable, Union


def get_file_extension(filepath: Union[str, Path]) -> str:
    """
    Extract the lowercase file extension from a filepath, including the dot.

    Example:
        >>> get_file_extension("PEDIDO_138768.XLSX")
        '.xlsx'
        >>> get_file_extension("noextension")
        ''
    """
    return Path(filepath).suffix.lower()


def fold_accents(text: str) -> str:
    """
    Lowercase ``text`` and remove diacritics.

    ERP exports are inconsistent about accents ("Cabeçalho", "CABECALHO"),
    so section names and keywords are compared in folded form.

    Example:
        >>> fold_accents("Informações Gerais")
        'informacoes gerais'
    """
    decomposed = unicodedata.normalize('NFKD', text or '')
    stripped = ''.join(c for c in decomposed if not unicodedata.combining(c))
    return stripped.lower().strip()


def read_text(
    filepath: Union[str, Path],
    encodings: Iterable[str] = ("utf-8", "cp1252", "latin-1")
) -> str:
    """
    Read a text file, trying each encoding in turn.

    ERP exports produced on Windows hosts are frequently cp1252; latin-1
    accepts any byte sequence and is therefore the last resort.

    Args:
        filepath: Path to the text file.
        encodings: Encodings to try, in order.

    Returns:
        Decoded file content.
    """
    raw = Path(filepath).read_bytes()
    last_error = None
    for encoding in encodings:
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError as e:
            last_error = e
            continue
    raise last_error
