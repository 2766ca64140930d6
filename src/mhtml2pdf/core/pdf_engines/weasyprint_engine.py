"""
WeasyPrint PDF Engine

Browser-free alternative engine using WeasyPrint to render the rewritten
HTML to PDF.

Resources are constrained to local filesystem by default via a custom
url_fetcher that denies http(s) requests to ensure offline rendering. There is
no script execution, so the readiness selector and user agent do not apply.
"""

import logging
import os
from typing import Optional
from urllib.parse import urlparse
from urllib.request import url2pathname

try:
    from weasyprint import HTML
except Exception:  # pragma: no cover - handled at runtime
    HTML = None

from ..exceptions import RenderError


class WeasyPrintEngine:
    name = 'weasyprint'

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def _local_only_fetcher(self, allowed_base: Optional[str] = None):
        """
        Return a url_fetcher for WeasyPrint that only allows local file paths.
        Optionally restrict under an allowed_base directory.
        """

        def fetch(url):
            # Deny any remote fetches
            if url.startswith('http://') or url.startswith('https://'):
                raise RuntimeError(f"Remote fetch blocked: {url}")
            if url.startswith('file:'):
                path = url2pathname(urlparse(url).path)
            else:
                # Treat bare paths as local
                path = url
            abs_path = os.path.abspath(path)
            if allowed_base:
                base = os.path.abspath(allowed_base)
                if os.path.commonpath([abs_path, base]) != base:
                    raise RuntimeError(f"Access outside allowed base blocked: {url}")
            with open(abs_path, 'rb') as f:
                data = f.read()
            return {
                'string': data,
                'mime_type': None,  # Let WeasyPrint infer
                'encoding': 'binary'
            }

        return fetch

    def available(self) -> bool:
        """Return True if WeasyPrint is importable."""
        return HTML is not None

    def render(self, html_path: str, user_agent: str, ready_selector: str, timeout: float) -> bytes:
        """
        Render a local HTML file to PDF bytes.

        Only ``html_path`` is used; the other arguments exist so that all
        engines share one call signature.
        """
        if HTML is None:
            raise RenderError("WeasyPrint is not installed. Please install 'weasyprint'.")

        base_dir = os.path.dirname(os.path.abspath(html_path))
        try:
            url_fetcher = self._local_only_fetcher(allowed_base=base_dir)
            document = HTML(filename=html_path, base_url=base_dir, url_fetcher=url_fetcher)
            return document.write_pdf()
        except Exception as e:
            raise RenderError(f"WeasyPrint generation failed: {e}", original_error=e) from e
