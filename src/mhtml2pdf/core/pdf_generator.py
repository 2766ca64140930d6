"""
PDF Generation Module

Hands the rewritten HTML document to a PDF engine and returns the printed
bytes. Chromium (through Playwright) is the default engine; WeasyPrint can be
selected for browser-free rendering.
"""

import logging
import os

from .exceptions import RenderError
from .pdf_engines import ENGINES

DEFAULT_USER_AGENT = "WebScraper 1.0"
DEFAULT_READY_SELECTOR = "body"
DEFAULT_RENDER_TIMEOUT = 60.0


class PDFGenerator:
    """Generates PDF bytes from a local HTML file using a named engine."""

    def __init__(self,
                 engine='chromium',
                 user_agent: str = DEFAULT_USER_AGENT,
                 ready_selector: str = DEFAULT_READY_SELECTOR,
                 timeout: float = DEFAULT_RENDER_TIMEOUT):
        """
        Args:
            engine: Engine name from ``ENGINES`` or an engine instance
            user_agent: User-Agent the engine reports while loading the page
            ready_selector: Selector that must be visible before printing
            timeout: Seconds allowed for the render round-trip
        """
        self.logger = logging.getLogger(__name__)
        if isinstance(engine, str):
            if engine not in ENGINES:
                raise ValueError(f"Unknown PDF engine {engine!r}; choose from {', '.join(sorted(ENGINES))}")
            engine = ENGINES[engine]()
        self.engine = engine
        self.user_agent = user_agent
        self.ready_selector = ready_selector
        self.timeout = timeout

    def generate_pdf(self, html_path: str) -> bytes:
        """
        Render an HTML file to PDF.

        Args:
            html_path: Path of the rewritten HTML document

        Returns:
            PDF bytes

        Raises:
            RenderError: if the engine is unavailable, fails or returns nothing
        """
        if not self.engine.available():
            raise RenderError(f"PDF engine {self.engine.name!r} is not available")

        self.logger.info(f"Rendering {os.path.basename(html_path)} with {self.engine.name}")
        pdf_bytes = self.engine.render(html_path,
                                       user_agent=self.user_agent,
                                       ready_selector=self.ready_selector,
                                       timeout=self.timeout)
        if not pdf_bytes:
            raise RenderError(f"PDF engine {self.engine.name!r} returned no data")
        return pdf_bytes
