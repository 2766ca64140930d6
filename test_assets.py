#!/usr/bin/env python3
"""
Focused tests for resource persistence and reference rewriting.
"""

import io
import os

import pytest
from bs4 import BeautifulSoup

from mhtml2pdf.core.assets import (ReferenceRewriter, ResourcePersister, extension_for,
                                   parse_html_part, select_html_part)
from mhtml2pdf.core.exceptions import HTMLNotFoundError, MissingContentTypeError
from mhtml2pdf.core.logger import create_error_tracker
from mhtml2pdf.core.mime import RawPart, read_mime_header
from mhtml2pdf.utils.file_manager import FileManager


def make_part(header_text: str, body: bytes = b"") -> RawPart:
    headers = read_mime_header(io.BytesIO(header_text.encode('utf-8') + b"\r\n"))
    return RawPart(headers=headers, body=body)


def sample_parts():
    return [
        make_part("Content-Type: text/html; charset=utf-8\r\n", b"<html><body></body></html>"),
        make_part("Content-Type: image/png\r\nContent-Location: cid:image1\r\n", b"png-bytes"),
        make_part("Content-Type: text/css\r\n", b"body{}"),
        make_part("Content-Type: image/jpeg\r\nContent-Location: https://example.com/a.jpg\r\n", b"jpg-bytes"),
    ]


def test_extension_for():
    assert extension_for('image/jpeg') == '.jpg'
    assert extension_for('image/png') == '.png'
    assert extension_for('application/x-not-registered-anywhere') == '.dat'


def test_select_html_part_takes_first():
    parts = sample_parts() + [make_part("Content-Type: text/html\r\n", b"<p>second</p>")]
    assert select_html_part(parts) == 0


def test_select_html_part_without_html():
    with pytest.raises(HTMLNotFoundError):
        select_html_part(sample_parts()[1:])


def test_select_html_part_validates_every_part():
    parts = sample_parts() + [make_part("Content-Location: cid:orphan\r\n", b"x")]
    with pytest.raises(MissingContentTypeError) as info:
        select_html_part(parts)
    assert info.value.part_index == 4


def test_persist_writes_every_resource(tmp_path):
    files = FileManager(str(tmp_path / "page.mht"))
    mapping = ResourcePersister(files).persist(sample_parts(), html_index=0)

    png = tmp_path / "page_files" / "image" / "png" / "1.png"
    css = tmp_path / "page_files" / "text" / "css" / "2.css"
    jpg = tmp_path / "page_files" / "image" / "jpeg" / "3.jpg"
    assert png.read_bytes() == b"png-bytes"
    assert css.read_bytes() == b"body{}"
    assert jpg.read_bytes() == b"jpg-bytes"
    assert files.get_artifact_stats()['resource_files'] == 3

    # Only parts with a Content-Location are referenceable
    assert mapping == {
        'cid:image1': str(png),
        'https://example.com/a.jpg': str(jpg),
    }


def test_persist_requires_content_type(tmp_path):
    parts = sample_parts() + [make_part("Content-Location: cid:orphan\r\n", b"x")]
    with pytest.raises(MissingContentTypeError):
        ResourcePersister(FileManager(str(tmp_path / "page.mht"))).persist(parts, html_index=0)


def test_parse_html_part_uses_declared_charset():
    part = make_part("Content-Type: text/html; charset=windows-1252\r\n",
                     "<html><body><p>café</p></body></html>".encode('cp1252'))
    soup = parse_html_part(part)
    assert soup.find('p').get_text() == "café"


def test_html_rewrite_basic():
    html = '''<html><head>
    <link rel="stylesheet" href="https://example.com/site.css">
    <script src="https://example.com/app.js"></script>
    </head><body>
    <img src="cid:image1" srcset="cid:image1 1x, https://example.com/big.png 2x" loading="lazy" alt="logo">
    <img src="https://cdn.example.com/external.png" loading="lazy">
    </body></html>'''
    mapping = {
        'cid:image1': '/abs/output/page_files/image/png/1.png',
        'https://example.com/site.css': '/abs/output/page_files/text/css/2.css',
        'https://example.com/app.js': '/abs/output/page_files/text/javascript/3.js',
    }
    soup = BeautifulSoup(html, 'lxml')
    count = ReferenceRewriter().rewrite(soup, mapping, base_dir='/abs/output')

    assert count == 3
    assert soup.find('link')['href'] == 'page_files/text/css/2.css'
    assert soup.find('script')['src'] == 'page_files/text/javascript/3.js'
    first, second = soup.find_all('img')
    assert first['src'] == 'page_files/image/png/1.png'
    assert first['alt'] == 'logo'
    assert 'srcset' not in first.attrs and 'loading' not in first.attrs
    # Unmapped references pass through, hints are still dropped
    assert second['src'] == 'https://cdn.example.com/external.png'
    assert 'loading' not in second.attrs


def test_rewrite_without_base_dir_uses_mapped_path():
    soup = BeautifulSoup('<img src="cid:a">', 'lxml')
    ReferenceRewriter().rewrite(soup, {'cid:a': 'page_files/image/png/1.png'})
    assert soup.find('img')['src'] == 'page_files/image/png/1.png'


def test_rewrite_round_trip_preserves_structure():
    html = ('<html><head><title>t</title><link rel="icon" href="cid:icon" data-x="1"></head>'
            '<body class="main"><p id="a">text <b>bold</b></p>'
            '<img src="cid:pic" width="10" srcset="x 2x" loading="lazy">'
            '<script src="remote.js" async></script></body></html>')
    mapping = {'cid:icon': 'page_files/image/x-icon/1.ico', 'cid:pic': 'page_files/image/png/2.png'}

    original = BeautifulSoup(html, 'lxml')
    rewriter = ReferenceRewriter()
    soup = parse_html_part(make_part("Content-Type: text/html; charset=utf-8\r\n", html.encode('utf-8')))
    rewriter.rewrite(soup, mapping)
    rewritten = rewriter.render_html(soup)
    reparsed = BeautifulSoup(rewritten, 'lxml')

    targeted = {'link': 'href', 'img': 'src', 'script': 'src'}

    def shape(soup):
        result = []
        for el in soup.find_all(True):
            attrs = dict(el.attrs)
            if el.name in targeted:
                attrs.pop(targeted[el.name], None)
            if el.name == 'img':
                attrs.pop('srcset', None)
                attrs.pop('loading', None)
            result.append((el.name, attrs))
        return result

    assert shape(reparsed) == shape(original)
    assert reparsed.find('p').get_text() == 'text bold'
    assert reparsed.find('link')['href'] == 'page_files/image/x-icon/1.ico'
    assert reparsed.find('script')['src'] == 'remote.js'
    assert reparsed.find('img')['src'] == 'page_files/image/png/2.png'


def test_resource_path_layout():
    files = FileManager(os.path.join("docs", "page.mhtml"))
    assert files.resources_dir == os.path.join("docs", "page_files")
    assert files.html_path == os.path.join("docs", "page.html")
    assert files.pdf_path == os.path.join("docs", "page.pdf")
    assert files.resource_path('image/png', 7, '.png') == os.path.join("docs", "page_files", "image", "png", "7.png")


def test_rewrite_quotes_reserved_characters():
    soup = BeautifulSoup('<img src="cid:a">', 'lxml')
    mapping = {'cid:a': '/abs/out/Report #1 100%_files/image/png/1.png'}
    ReferenceRewriter().rewrite(soup, mapping, base_dir='/abs/out')
    assert soup.find('img')['src'] == 'Report%20%231%20100%25_files/image/png/1.png'


def test_duplicate_location_warns_and_later_part_wins(tmp_path):
    files = FileManager(str(tmp_path / "page.mht"))
    tracker = create_error_tracker('test')
    parts = sample_parts() + [make_part("Content-Type: image/gif\r\nContent-Location: cid:image1\r\n", b"gif")]

    mapping = ResourcePersister(files, tracker).persist(parts, html_index=0)

    assert mapping['cid:image1'] == str(tmp_path / "page_files" / "image" / "gif" / "4.gif")
    assert len(tracker.warnings) == 1
    assert tracker.warnings[0]['context'] == 'persisting'
    assert 'cid:image1' in tracker.warnings[0]['message']


if __name__ == "__main__":
    test_extension_for()
    test_html_rewrite_basic()
    test_rewrite_round_trip_preserves_structure()
    print("✓ asset rewrite tests passed")
