"""
Renderer Client - HTML to PDF on a remote Browserless Chromium.

Connects to Browserless over the Chrome DevTools Protocol, loads the HTML
as the page content and prints the page to PDF. The remote browser is
closed exactly once per render, whatever happens while rendering.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

logger = logging.getLogger(__name__)


class RenderError(Exception):
    """Base exception for rendering failures."""
    pass


class RenderConnectionError(RenderError):
    """Raised when the Browserless session cannot be opened."""
    pass


class RenderFailedError(RenderError):
    """Raised when the page cannot be loaded or printed."""
    pass


class EmptyRenderError(RenderError):
    """Raised when the browser returns a zero-length PDF."""
    pass


class RenderTimeoutError(RenderError):
    """Raised when rendering exceeds the configured timeout."""
    pass


class RendererClient:
    """Renders HTML documents to PDF bytes on a remote browser."""

    def __init__(
        self,
        ws_endpoint: str,
        timeout: Optional[float] = None,
        pdf_format: Optional[str] = None,
        print_background: bool = False,
    ):
        self.ws_endpoint = ws_endpoint
        self.timeout = timeout
        self.pdf_format = pdf_format
        self.print_background = print_background

    def _pdf_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"print_background": self.print_background}
        if self.pdf_format:
            options["format"] = self.pdf_format
        return options

    async def render(self, html: Optional[str]) -> bytes:
        """
        Render ``html`` and return the complete PDF.

        Args:
            html: Full document content; None renders an empty page

        Returns:
            PDF bytes, never empty

        Raises:
            RenderConnectionError: Browserless could not be reached
            RenderFailedError: page load or PDF printing failed
            RenderTimeoutError: rendering exceeded the configured timeout
            EmptyRenderError: the browser produced no bytes
        """
        try:
            pdf_bytes = await asyncio.wait_for(self._render(html), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.error(f"PDF rendering timed out after {self.timeout}s")
            raise RenderTimeoutError(f"Rendering timed out after {self.timeout}s")

        if not pdf_bytes:
            raise EmptyRenderError("PDF rendering produced no bytes")

        logger.info(f"PDF captured ({len(pdf_bytes)} bytes)")
        return bytes(pdf_bytes)

    async def _render(self, html: Optional[str]) -> bytes:
        async with async_playwright() as p:
            try:
                browser = await p.chromium.connect_over_cdp(self.ws_endpoint)
            except PlaywrightError as e:
                logger.error(f"Browserless connection failed: {e}")
                raise RenderConnectionError(f"Could not connect to rendering service: {e}") from e

            try:
                page = await browser.new_page()
                await page.set_content(html or "")
                logger.info("Converting PDF")
                return await page.pdf(**self._pdf_options())
            except PlaywrightError as e:
                logger.error(f"PDF rendering failed: {e}")
                raise RenderFailedError(f"Rendering failed: {e}") from e
            finally:
                try:
                    await browser.close()
                except PlaywrightError as e:
                    logger.warning(f"Failed to close remote browser: {e}")
