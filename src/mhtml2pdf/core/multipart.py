"""
Multipart Decoding

Splits a MIME body into its leaf parts. Nested ``multipart/*`` sections are
decoded recursively and their parts are spliced into the same flat list, so
callers see every resource in document order regardless of container depth.
"""

import base64
import binascii
import io
import logging
import quopri
from email.message import Message
from typing import BinaryIO, List, Optional, Tuple

from .exceptions import MalformedMultipartError
from .mime import RawPart, parse_media_type, read_mime_header

_LINEAR_SPACE = b" \t\r\n"


def decode_transfer_encoding(headers: Message, body: bytes, part_index: Optional[int] = None) -> bytes:
    """
    Undo the Content-Transfer-Encoding of a part body.

    base64 and quoted-printable are decoded; 7bit, 8bit, binary and missing
    encodings are returned as-is.
    """
    encoding = (headers.get('Content-Transfer-Encoding') or '').strip().lower()
    if encoding == 'base64':
        try:
            return base64.b64decode(body)
        except (binascii.Error, ValueError) as e:
            raise MalformedMultipartError(f"invalid base64 body: {e}",
                                          part_index=part_index, original_error=e) from e
    if encoding == 'quoted-printable':
        return quopri.decodestring(body)
    return body


class MultipartDecoder:
    """
    Decodes multipart bodies into a flat, ordered list of RawParts.

    Every call to ``decode`` starts a fresh list; the decoder keeps no state
    between calls.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def decode(self, stream: BinaryIO, boundary: str) -> List[RawPart]:
        """
        Decode the body of a multipart section delimited by ``boundary``.

        Args:
            stream: Binary stream positioned at the start of the body
            boundary: Boundary parameter of the enclosing Content-Type

        Returns:
            Leaf parts in the order they appear, nested sections flattened
        """
        parts: List[RawPart] = []
        self._decode_multipart(stream, boundary, parts)
        self.logger.debug(f"Decoded {len(parts)} parts")
        return parts

    def _decode_entity(self, headers: Message, body: BinaryIO, parts: List[RawPart]) -> None:
        index = len(parts)
        mimetype, params = parse_media_type(headers.get('Content-Type') or '', part_index=index)

        if mimetype.startswith('multipart/'):
            boundary = params.get('boundary')
            if not boundary:
                raise MalformedMultipartError(f"{mimetype} section has no boundary parameter",
                                              part_index=index)
            self.logger.debug(f"Entering {mimetype} section at part {index}")
            self._decode_multipart(body, boundary, parts)
            return

        data = decode_transfer_encoding(headers, body.read(), part_index=index)
        parts.append(RawPart(headers=headers, body=data))

    def _decode_multipart(self, stream: BinaryIO, boundary: str, parts: List[RawPart]) -> None:
        delimiter = b"--" + boundary.encode('utf-8')

        # Skip the preamble up to the first delimiter
        while True:
            line = stream.readline()
            if not line:
                raise MalformedMultipartError(f"boundary {boundary!r} not found", part_index=len(parts))
            kind = self._classify(line, delimiter)
            if kind == 'close':
                return
            if kind == 'part':
                break

        while True:
            index = len(parts)
            headers = read_mime_header(stream, part_index=index)
            body, closed = self._read_body(stream, delimiter, index)
            self._decode_entity(headers, io.BufferedReader(io.BytesIO(body)), parts)
            if closed:
                return

    def _read_body(self, stream: BinaryIO, delimiter: bytes, index: int) -> Tuple[bytes, bool]:
        """
        Read body lines up to the next delimiter.

        Returns:
            Tuple of (body bytes, True if the delimiter was the closing one)
        """
        lines: List[bytes] = []
        while True:
            line = stream.readline()
            if not line:
                raise MalformedMultipartError("part ended before the closing boundary", part_index=index)
            kind = self._classify(line, delimiter)
            if kind is None:
                lines.append(line)
                continue

            # The line break before a delimiter belongs to the delimiter
            if lines:
                last = lines[-1]
                if last.endswith(b"\r\n"):
                    lines[-1] = last[:-2]
                elif last.endswith(b"\n"):
                    lines[-1] = last[:-1]
            return b"".join(lines), kind == 'close'

    @staticmethod
    def _classify(line: bytes, delimiter: bytes) -> Optional[str]:
        if not line.startswith(delimiter):
            return None
        rest = line[len(delimiter):].rstrip(_LINEAR_SPACE)
        if not rest:
            return 'part'
        if rest == b"--":
            return 'close'
        return None
