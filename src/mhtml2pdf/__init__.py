"""
mhtml2pdf: MHTML Archive to PDF Converter

Unpacks saved web-page archives (.mht/.mhtml), writes their embedded resources
next to the archive, rewrites the page to use those local files and prints it
to PDF through a headless browser.
"""

from typing import Iterable, Optional, Union

from .core.controller import ConversionConfig, ConversionController, ConversionResult
from .core.exceptions import (FileOpenError, HeaderParseError, HTMLNotFoundError,
                              MalformedMultipartError, MediaTypeParseError, Mhtml2PdfError,
                              MissingContentTypeError, PersistenceError, RenderError)
from .core.logger import initialize_logging

__version__ = "1.0"
__author__ = "mhtml2pdf Project"
__description__ = "MHTML Archive to PDF Converter"


def convert(paths: Union[str, Iterable[str]],
            config: Optional[ConversionConfig] = None,
            log_dir: Optional[str] = None) -> dict:
    """
    Convert one or more archives to PDF files next to them.

    Args:
        paths: An archive path or an iterable of paths
        config: Conversion settings (defaults to ``ConversionConfig()``)
        log_dir: When given, set up file and console logging there first

    Returns:
        Batch statistics from ``ConversionController.convert_batch``
    """
    config = config or ConversionConfig()
    if log_dir:
        initialize_logging(log_dir, verbose=config.verbose)
    if isinstance(paths, str):
        paths = [paths]
    return ConversionController(config).convert_batch(list(paths))


__all__ = [
    'convert',
    'ConversionConfig',
    'ConversionController',
    'ConversionResult',
    'Mhtml2PdfError',
    'FileOpenError',
    'HeaderParseError',
    'MalformedMultipartError',
    'MissingContentTypeError',
    'MediaTypeParseError',
    'HTMLNotFoundError',
    'PersistenceError',
    'RenderError',
]
