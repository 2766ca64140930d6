"""
Chromium PDF Engine

Default PDF engine. Drives a headless Chromium through Playwright: the
rewritten HTML file is opened through its file:// URL, the engine waits for a
readiness selector to become visible and then prints the full page with
background graphics.
"""

import logging
import time
from pathlib import Path

try:
    from playwright.sync_api import Error as PlaywrightError
    from playwright.sync_api import sync_playwright
except Exception:  # pragma: no cover - handled at runtime
    sync_playwright = None
    PlaywrightError = Exception

from ..exceptions import RenderError


class ChromiumEngine:
    name = 'chromium'

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def available(self) -> bool:
        """Return True if Playwright is importable."""
        return sync_playwright is not None

    def render(self, html_path: str, user_agent: str, ready_selector: str, timeout: float) -> bytes:
        """
        Print a local HTML file to PDF.

        Args:
            html_path: Path of the HTML document
            user_agent: User-Agent reported by the browser
            ready_selector: CSS selector that must be visible before printing
            timeout: Seconds allowed for each browser step

        Returns:
            PDF bytes
        """
        if sync_playwright is None:
            raise RenderError("Playwright is not installed. Please install 'playwright' "
                              "and run 'playwright install chromium'.")

        url = Path(html_path).resolve().as_uri()
        timeout_ms = timeout * 1000
        start = time.monotonic()

        try:
            with sync_playwright() as playwright:
                browser = playwright.chromium.launch()
                try:
                    context = browser.new_context(user_agent=user_agent)
                    page = context.new_page()
                    page.set_default_timeout(timeout_ms)
                    page.goto(url)
                    page.wait_for_selector(ready_selector, state='visible')
                    pdf_bytes = page.pdf(print_background=True)
                finally:
                    browser.close()
        except PlaywrightError as e:
            raise RenderError(f"Chromium failed to print {url}: {e}", original_error=e) from e

        self.logger.info(f"Took: {time.monotonic() - start:.2f} secs")
        return pdf_bytes
