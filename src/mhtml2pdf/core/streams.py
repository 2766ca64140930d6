"""
Byte Stream Filters

Raw MHTML files are not always valid MIME from their first byte. Some
producers emit blank lines or other whitespace ahead of the header block, and
some put the conventional "This is a multi-part message in MIME format."
sentence where a strict header parser chokes on it.

The filters here wrap a binary file object, work on whatever chunk size the
caller asks for and never hold the whole file in memory.
"""

import io
from typing import BinaryIO, Tuple

MIME_PREAMBLE = b"This is a multi-part message in MIME format."

DEFAULT_BUFFER_SIZE = io.DEFAULT_BUFFER_SIZE

_ASCII_SPACE = b" \t\n\r\x0b\x0c"


class _ChunkFilter(io.RawIOBase):
    """
    Base for read-only filters over another binary stream.

    Subclasses implement ``_next_chunk`` which returns the next filtered chunk
    or ``b""`` at end of stream. Filtered output larger than the caller's
    buffer is kept and served on the following reads.
    """

    def __init__(self, raw: BinaryIO):
        super().__init__()
        self.raw = raw
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if not self._pending:
            self._pending = self._next_chunk(max(len(buffer), 1))
        count = min(len(buffer), len(self._pending))
        buffer[:count] = self._pending[:count]
        self._pending = self._pending[count:]
        return count

    def close(self):
        if not self.closed:
            self.raw.close()
        super().close()

    def _next_chunk(self, size: int) -> bytes:
        raise NotImplementedError


def _utf8_width(lead: int) -> int:
    if 0xC2 <= lead <= 0xDF:
        return 2
    if 0xE0 <= lead <= 0xEF:
        return 3
    if 0xF0 <= lead <= 0xF4:
        return 4
    return 0


def strip_leading_space(data: bytes) -> Tuple[bytes, bytes]:
    """
    Strip leading Unicode whitespace from UTF-8 encoded bytes.

    Returns:
        Tuple of (remaining data, carry). ``carry`` holds an incomplete
        multi-byte sequence at the end of an all-whitespace chunk; it must be
        prepended to the next chunk before stripping again.
    """
    pos = 0
    size = len(data)
    while pos < size:
        lead = data[pos]
        if lead < 0x80:
            if lead not in _ASCII_SPACE:
                return data[pos:], b""
            pos += 1
            continue

        width = _utf8_width(lead)
        if not width:
            return data[pos:], b""
        if pos + width > size:
            return b"", data[pos:]
        try:
            char = data[pos:pos + width].decode('utf-8')
        except UnicodeDecodeError:
            return data[pos:], b""
        if not char.isspace():
            return data[pos:], b""
        pos += width

    return b"", b""


class LeadingWhitespaceTrimmer(_ChunkFilter):
    """
    Drops the run of whitespace at the very start of a stream.

    Trimming stops for good once a read produces non-whitespace data. Empty
    reads and all-whitespace chunks do not count as that first read, so the
    trim still happens when the first physical reads deliver nothing useful.
    """

    def __init__(self, raw: BinaryIO):
        super().__init__(raw)
        self.trimmed = False
        self._carry = b""

    def _next_chunk(self, size: int) -> bytes:
        while True:
            chunk = self.raw.read(size)
            if self.trimmed:
                return chunk or b""

            if not chunk:
                # An unfinished sequence at end of stream is not whitespace
                tail, self._carry = self._carry, b""
                if tail:
                    self.trimmed = True
                return tail

            data, self._carry = strip_leading_space(self._carry + chunk)
            if data:
                self.trimmed = True
                return data


class PreambleStripper(_ChunkFilter):
    """
    Removes every occurrence of a literal marker from a stream.

    Up to ``len(marker) - 1`` bytes are held back between reads so that a
    marker split across two chunks is still found.
    """

    def __init__(self, raw: BinaryIO, marker: bytes = MIME_PREAMBLE):
        super().__init__(raw)
        if not marker:
            raise ValueError("marker must not be empty")
        self.marker = marker
        self._tail = b""

    def _next_chunk(self, size: int) -> bytes:
        keep = len(self.marker) - 1
        while True:
            chunk = self.raw.read(size)
            if not chunk:
                tail, self._tail = self._tail, b""
                return tail

            data = (self._tail + chunk).replace(self.marker, b"")
            if len(data) > keep:
                if not keep:
                    self._tail = b""
                    return data
                self._tail = data[-keep:]
                return data[:-keep]
            self._tail = data


def open_normalized(raw: BinaryIO, buffer_size: int = DEFAULT_BUFFER_SIZE) -> io.BufferedReader:
    """
    Wrap a binary stream with both filters and a line-capable buffer.

    The preamble marker is removed first so that a marker at the very top of a
    file only leaves whitespace behind, which the trimmer then drops.
    """
    return io.BufferedReader(LeadingWhitespaceTrimmer(PreambleStripper(raw)), buffer_size)
