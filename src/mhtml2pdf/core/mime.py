"""
MIME Header Parsing

Reads ``Name: value`` header blocks from a line-oriented binary stream and
parses Content-Type values. Headers are returned as ``email.message.Message``
objects, which give case-insensitive lookup and keep repeated fields in order.
"""

import re
from dataclasses import dataclass
from email.message import Message
from email.utils import collapse_rfc2231_value
from typing import BinaryIO, Dict, Optional, Tuple

from .exceptions import (HeaderParseError, MalformedMultipartError, MediaTypeParseError,
                         MissingContentTypeError)

_TOKEN = r"[!#$%&'*+.^_`|~0-9A-Za-z-]+"
_MEDIA_TYPE_RE = re.compile(rf"^\s*({_TOKEN})/({_TOKEN})\s*(?:;.*)?$", re.S)
_FIELD_NAME_RE = re.compile(r"^[!-9;-~]+$")


@dataclass(frozen=True)
class RawPart:
    """One leaf section of a MIME message: its headers and decoded body."""

    headers: Message
    body: bytes

    @property
    def content_type(self) -> str:
        return (self.headers.get('Content-Type') or '').strip()

    @property
    def location(self) -> Optional[str]:
        value = self.headers.get('Content-Location')
        if value is None:
            return None
        return value.strip() or None


def _decode_line(raw: bytes) -> str:
    try:
        return raw.decode('utf-8')
    except UnicodeDecodeError:
        return raw.decode('latin-1')


def read_mime_header(stream: BinaryIO, part_index: Optional[int] = None) -> Message:
    """
    Read one header block terminated by a blank line.

    Continuation lines (starting with a space or tab) are folded into the
    previous field. On return the stream is positioned at the first byte of
    the body.

    Args:
        stream: Binary stream supporting ``readline``
        part_index: Index of the part being read, for error messages

    Returns:
        Message holding the parsed fields

    Raises:
        HeaderParseError: if the block is malformed or the stream ends first
    """
    headers = Message()
    name: Optional[str] = None
    value = ''

    while True:
        line = stream.readline()
        if not line:
            raise HeaderParseError("unexpected end of stream in header block", part_index=part_index)

        text = _decode_line(line.rstrip(b"\r\n"))
        if not text.strip():
            break

        if text[0] in ' \t':
            if name is None:
                raise HeaderParseError(f"malformed initial header line: {text!r}", part_index=part_index)
            value = f"{value} {text.strip()}" if value else text.strip()
            continue

        if name is not None:
            headers[name] = value

        field, sep, rest = text.partition(':')
        if not sep or not _FIELD_NAME_RE.match(field):
            raise HeaderParseError(f"malformed header line: {text!r}", part_index=part_index)
        name = field
        value = rest.strip()

    if name is not None:
        headers[name] = value
    return headers


def parse_media_type(value: str, part_index: Optional[int] = None) -> Tuple[str, Dict[str, str]]:
    """
    Split a Content-Type value into a lowercased MIME type and its parameters.

    Raises:
        MissingContentTypeError: if the value is empty
        MediaTypeParseError: if the value is not ``type/subtype[; params]``
    """
    if not value or not value.strip():
        raise MissingContentTypeError("missing Content-Type", part_index=part_index)

    match = _MEDIA_TYPE_RE.match(value)
    if not match:
        raise MediaTypeParseError(f"cannot parse media type {value!r}", part_index=part_index)

    maintype, subtype = match.group(1).lower(), match.group(2).lower()
    # The type doubles as a directory name when resources are written out
    if set(maintype) == {'.'} or set(subtype) == {'.'}:
        raise MediaTypeParseError(f"invalid media type {value!r}", part_index=part_index)

    holder = Message()
    holder['Content-Type'] = value
    params: Dict[str, str] = {}
    for key, param in (holder.get_params() or [])[1:]:
        params[key.lower()] = collapse_rfc2231_value(param)

    return f"{maintype}/{subtype}", params


def boundary_of(headers: Message) -> str:
    """
    Return the boundary of a top-level ``multipart/*`` header block.

    Raises:
        MissingContentTypeError: if the block has no Content-Type
        MalformedMultipartError: if the type is not multipart or has no boundary
    """
    mimetype, params = parse_media_type(headers.get('Content-Type') or '')
    if not mimetype.startswith('multipart/'):
        raise MalformedMultipartError(f"top-level type {mimetype} is not multipart")
    boundary = params.get('boundary')
    if not boundary:
        raise MalformedMultipartError(f"{mimetype} has no boundary parameter")
    return boundary
