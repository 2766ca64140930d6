"""
Conversion Errors

Every stage of the MHTML to PDF pipeline fails fast with one of the errors
below. Each error can carry the input file it happened in and the index of the
MIME part that caused it, so the final message names both.

    Mhtml2PdfError
      FileOpenError
      HeaderParseError
      MalformedMultipartError
      MissingContentTypeError
      MediaTypeParseError
      HTMLNotFoundError
      PersistenceError
      RenderError
"""

from typing import Optional


class Mhtml2PdfError(Exception):
    """Base class for all conversion errors."""

    def __init__(self,
                 message: str,
                 source: Optional[str] = None,
                 part_index: Optional[int] = None,
                 original_error: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.source = source
        self.part_index = part_index
        self.original_error = original_error

    def __str__(self) -> str:
        text = self.message
        if self.part_index is not None:
            text = f"part {self.part_index}: {text}"
        if self.source:
            text = f"{self.source}: {text}"
        return text


class FileOpenError(Mhtml2PdfError):
    """The input archive does not exist or cannot be read."""


class HeaderParseError(Mhtml2PdfError):
    """A top-level or part header block is malformed or truncated."""


class MalformedMultipartError(Mhtml2PdfError):
    """The boundary structure of a multipart body is inconsistent."""


class MissingContentTypeError(Mhtml2PdfError):
    """A part has no usable Content-Type header."""


class MediaTypeParseError(Mhtml2PdfError):
    """A Content-Type value is not a parseable media type."""


class HTMLNotFoundError(Mhtml2PdfError):
    """The archive holds no text/html part."""


class PersistenceError(Mhtml2PdfError):
    """Writing a resource, directory or output file failed."""


class RenderError(Mhtml2PdfError):
    """The PDF engine failed, timed out or is not installed."""
