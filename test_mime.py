#!/usr/bin/env python3
"""
Tests for MIME header block reading and Content-Type parsing.
"""

import io

import pytest

from mhtml2pdf.core.exceptions import (HeaderParseError, MalformedMultipartError, MediaTypeParseError,
                                       MissingContentTypeError)
from mhtml2pdf.core.mime import RawPart, boundary_of, parse_media_type, read_mime_header


def test_header_block_leaves_stream_at_body():
    stream = io.BytesIO(b"MIME-Version: 1.0\r\n"
                        b"Content-Type: multipart/related;\r\n"
                        b"\tboundary=\"----=_Part_1\"\r\n"
                        b"\r\n"
                        b"BODY")
    headers = read_mime_header(stream)
    assert headers['mime-version'] == '1.0'
    assert headers['CONTENT-TYPE'] == 'multipart/related; boundary="----=_Part_1"'
    assert stream.read() == b"BODY"


def test_repeated_fields_keep_order():
    stream = io.BytesIO(b"Received: first\nReceived: second\nSubject: x\n\n")
    headers = read_mime_header(stream)
    assert headers.get_all('received') == ['first', 'second']
    assert headers['Subject'] == 'x'


def test_empty_header_block():
    stream = io.BytesIO(b"\r\nbody")
    headers = read_mime_header(stream)
    assert len(headers) == 0
    assert stream.read() == b"body"


def test_end_of_stream_before_blank_line():
    with pytest.raises(HeaderParseError):
        read_mime_header(io.BytesIO(b"Content-Type: text/html\r\n"))


def test_line_without_colon():
    with pytest.raises(HeaderParseError):
        read_mime_header(io.BytesIO(b"Content-Type: text/html\r\nnot a header\r\n\r\n"))


def test_initial_continuation_line():
    with pytest.raises(HeaderParseError) as info:
        read_mime_header(io.BytesIO(b" folded: value\r\n\r\n"), part_index=4)
    assert info.value.part_index == 4


def test_parse_media_type_lowercases_and_returns_params():
    mimetype, params = parse_media_type('Multipart/Related; type="text/html"; Boundary="a;b"')
    assert mimetype == 'multipart/related'
    assert params == {'type': 'text/html', 'boundary': 'a;b'}


def test_parse_media_type_without_params():
    assert parse_media_type('image/png') == ('image/png', {})


@pytest.mark.parametrize('value', ['garbage', 'text/', '/html', 'text/html extra', '../..'])
def test_unparseable_media_types(value):
    with pytest.raises(MediaTypeParseError):
        parse_media_type(value)


def test_empty_media_type():
    with pytest.raises(MissingContentTypeError):
        parse_media_type('  ')


def test_raw_part_accessors():
    headers = read_mime_header(io.BytesIO(b"Content-Type: image/png \r\nContent-Location:  cid:a \r\n\r\n"))
    part = RawPart(headers=headers, body=b"x")
    assert part.content_type == 'image/png'
    assert part.location == 'cid:a'

    bare = RawPart(headers=read_mime_header(io.BytesIO(b"\r\n")), body=b"")
    assert bare.content_type == ''
    assert bare.location is None


def test_boundary_of_top_level_block():
    headers = read_mime_header(io.BytesIO(b"Content-Type: multipart/related;\r\n"
                                          b"\ttype=\"text/html\"; boundary=\"----=_Part_1\"\r\n\r\n"))
    assert boundary_of(headers) == "----=_Part_1"


@pytest.mark.parametrize("header", [
    b"Content-Type: text/html; charset=utf-8\r\n\r\n",
    b"Content-Type: multipart/related; type=\"text/html\"\r\n\r\n",
])
def test_boundary_of_rejects_non_multipart_blocks(header):
    with pytest.raises(MalformedMultipartError):
        boundary_of(read_mime_header(io.BytesIO(header)))


def test_boundary_of_without_content_type():
    with pytest.raises(MissingContentTypeError):
        boundary_of(read_mime_header(io.BytesIO(b"MIME-Version: 1.0\r\n\r\n")))
