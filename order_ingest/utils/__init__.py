"""
Utility Module for the order ingestion library.

This module provides common utilities used across all other modules:
    - Logging configuration
    - Exception hierarchy
    - File and text helpers
"""

from .logger import setup_logger, setup_logger_from_config, get_logger
from .helpers import get_file_extension, fold_accents, read_text

__all__ = [
    'setup_logger',
    'setup_logger_from_config',
    'get_logger',
    'get_file_extension',
    'fold_accents',
    'read_text'
]
