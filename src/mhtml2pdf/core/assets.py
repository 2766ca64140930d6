"""
Resource persistence and reference rewrite utilities.

This module writes the embedded resources of a decoded archive to disk and
rewrites the HTML document so that its images, stylesheets and scripts point
at those local files instead of their original locations.
"""

from __future__ import annotations

import os
import mimetypes
import logging
from typing import List, Dict, Optional
from urllib.parse import quote

from bs4 import BeautifulSoup

from .exceptions import HTMLNotFoundError, MissingContentTypeError
from .logger import ErrorTracker
from .mime import RawPart, parse_media_type
from ..utils.file_manager import FileManager


HTML_MIME_TYPE = 'text/html'
JPEG_MIME_TYPE = 'image/jpeg'
DEFAULT_EXTENSION = '.dat'

# Tag -> attribute holding the resource reference
REFERENCE_ATTRIBUTES = {
    'img': 'src',
    'link': 'href',
    'script': 'src',
}

# Lazy-load and responsive hints that would pull remote sources back in
IMG_DROPPED_ATTRIBUTES = ('loading', 'srcset')


def content_mimetype(part: RawPart, index: int) -> str:
    """Return the parsed MIME type of a part, failing if it has none."""
    content_type = part.content_type
    if not content_type:
        raise MissingContentTypeError("missing Content-Type", part_index=index)
    mimetype, _ = parse_media_type(content_type, part_index=index)
    return mimetype


def extension_for(mimetype: str) -> str:
    """
    Pick a file extension for a MIME type.

    JPEG always maps to ``.jpg`` since registries disagree on it; other types
    take the first registered extension, falling back to ``.dat``.
    """
    if mimetype == JPEG_MIME_TYPE:
        return '.jpg'
    extensions = mimetypes.guess_all_extensions(mimetype)
    if extensions:
        return extensions[0]
    return DEFAULT_EXTENSION


def select_html_part(parts: List[RawPart]) -> int:
    """
    Find the document part of a decoded archive.

    Every part's Content-Type is validated on the way, so a part without one
    fails the conversion even when it comes after the document.

    Returns:
        Index of the first ``text/html`` part

    Raises:
        MissingContentTypeError, MediaTypeParseError: on an invalid part
        HTMLNotFoundError: if no part is HTML
    """
    html_index: Optional[int] = None
    for index, part in enumerate(parts):
        mimetype = content_mimetype(part, index)
        if html_index is None and mimetype == HTML_MIME_TYPE:
            html_index = index

    if html_index is None:
        raise HTMLNotFoundError("html not found")
    return html_index


def parse_html_part(part: RawPart) -> BeautifulSoup:
    """Parse the document part, honouring its declared charset."""
    _, params = parse_media_type(part.content_type)
    charset = params.get('charset') or None
    return BeautifulSoup(part.body, 'lxml', from_encoding=charset)


class ResourcePersister:
    def __init__(self, file_manager: FileManager, error_tracker: Optional[ErrorTracker] = None):
        self.file_manager = file_manager
        self.error_tracker = error_tracker
        self.logger = logging.getLogger(__name__)

    def persist(self, parts: List[RawPart], html_index: int) -> Dict[str, str]:
        """
        Write every part except the document to disk.

        Args:
            parts: Decoded parts in decode order
            html_index: Index of the document part, which is skipped

        Returns:
            Mapping of Content-Location -> written file path
        """
        mapping: Dict[str, str] = {}
        written = 0
        for index, part in enumerate(parts):
            if index == html_index:
                continue

            mimetype = content_mimetype(part, index)
            extension = extension_for(mimetype)
            path = self.file_manager.write_resource(mimetype, index, extension, part.body)
            written += 1

            location = part.location
            if location:
                if location in mapping:
                    message = f"Content-Location {location} is declared again by part {index}; the later part wins"
                    if self.error_tracker:
                        self.error_tracker.log_warning(message, context="persisting",
                                                       source=self.file_manager.source_path)
                    else:
                        self.logger.warning(message)
                mapping[location] = path

        self.logger.info(f"Persisted {written} resources ({len(mapping)} referenceable)")
        return mapping


class ReferenceRewriter:
    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def rewrite(self, soup: BeautifulSoup, mapping: Dict[str, str], base_dir: Optional[str] = None) -> int:
        """
        Point img/link/script references at their persisted files.

        Modifies ``soup`` in place. References without a mapping are left as
        they are; ``loading`` and ``srcset`` are removed from every image.

        Args:
            soup: Parsed HTML document
            mapping: Content-Location -> local file path
            base_dir: When given, mapped paths are written as URL-quoted
                references relative to this directory

        Returns:
            Number of references rewritten
        """

        def local_ref(local_path: str) -> str:
            if base_dir is None:
                return local_path
            rel = os.path.relpath(os.path.abspath(local_path), base_dir)
            # Loaded through a file:// URL
            return quote(rel.replace(os.sep, '/'))

        rewritten = 0
        for element in soup.find_all(list(REFERENCE_ATTRIBUTES)):
            attr = REFERENCE_ATTRIBUTES[element.name]
            if element.name == 'img':
                for dropped in IMG_DROPPED_ATTRIBUTES:
                    if dropped in element.attrs:
                        del element[dropped]

            ref = element.get(attr)
            if ref is not None and ref in mapping:
                element[attr] = local_ref(mapping[ref])
                rewritten += 1

        self.logger.debug(f"Rewrote {rewritten} references")
        return rewritten

    def render_html(self, soup: BeautifulSoup) -> str:
        """Serialize a rewritten document."""
        return str(soup)
