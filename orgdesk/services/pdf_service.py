"""
HTML → PDF conversion with headless Chromium (Playwright).

Every conversion launches its own browser and closes it in ``finally``, on
success and on failure.  A process-wide bounded semaphore caps how many
browsers run at once; waiting for a slot is limited by the same timeout as
the render itself.

The converter used by the app lives in ``app.extensions["pdf_converter"]``
(see ``init_pdf_converter``) so tests can register a fake.
"""

import logging
import threading

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright

from orgdesk.core.exceptions import ConversionError

logger = logging.getLogger(__name__)

CHROMIUM_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
)

DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_MAX_CONCURRENCY = 2
DEFAULT_PAGE_FORMAT = "A4"
DEFAULT_MARGIN = "20mm"


class PdfConverter:
    """Print HTML documents to PDF bytes."""

    def __init__(
        self,
        timeout_ms=DEFAULT_TIMEOUT_MS,
        max_concurrency=DEFAULT_MAX_CONCURRENCY,
        page_format=DEFAULT_PAGE_FORMAT,
        margin=DEFAULT_MARGIN,
    ):
        self.timeout_ms = int(timeout_ms)
        self.page_format = page_format
        self.margin = margin
        self._slots = threading.BoundedSemaphore(max(1, int(max_concurrency)))

    def pdf_options(self) -> dict:
        return {
            "format": self.page_format,
            "print_background": True,
            "margin": {
                "top": self.margin,
                "right": self.margin,
                "bottom": self.margin,
                "left": self.margin,
            },
        }

    def convert(self, html: str) -> bytes:
        """Render ``html`` and return the PDF bytes.

        Raises:
            ConversionError: no free slot within the timeout, or the browser
                failed to launch, load or print.
        """
        if not self._slots.acquire(timeout=self.timeout_ms / 1000):
            raise ConversionError(
                "PDF conversion capacity exhausted",
                details="Timed out waiting for a free renderer",
            )
        try:
            return self._print(html)
        finally:
            self._slots.release()

    def _print(self, html: str) -> bytes:
        try:
            with sync_playwright() as p:
                browser = p.chromium.launch(
                    headless=True, args=list(CHROMIUM_ARGS), timeout=self.timeout_ms,
                )
                try:
                    page = browser.new_page()
                    page.set_default_timeout(self.timeout_ms)
                    page.set_content(html, wait_until="networkidle")
                    return page.pdf(**self.pdf_options())
                finally:
                    browser.close()
        except PlaywrightError as exc:
            logger.error("PDF conversion failed: %s", exc)
            # Playwright messages carry a multi-line call log; keep the headline
            first_line = (str(exc).splitlines() or [""])[0]
            raise ConversionError("PDF conversion failed", details=first_line or None) from exc


def init_pdf_converter(app):
    """Register a converter built from app config on ``app.extensions``."""
    app.extensions["pdf_converter"] = PdfConverter(
        timeout_ms=app.config.get("PDF_RENDER_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
        max_concurrency=app.config.get("PDF_MAX_CONCURRENCY", DEFAULT_MAX_CONCURRENCY),
        page_format=app.config.get("PDF_PAGE_FORMAT", DEFAULT_PAGE_FORMAT),
        margin=app.config.get("PDF_MARGIN", DEFAULT_MARGIN),
    )


def get_pdf_converter(app):
    return app.extensions["pdf_converter"]
