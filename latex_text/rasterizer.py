"""
SVG rasterization through headless Chromium (pyppeteer).
"""
import asyncio
import io
import logging
import math
import threading
from typing import Optional

from PIL import Image
from pyppeteer import launch

logger = logging.getLogger(__name__)

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<style>
  html, body {{ margin: 0; padding: 0; background: transparent; }}
  #equation {{ width: {width}px; height: {height}px; }}
  #equation svg {{ width: 100%; height: 100%; display: block; }}
</style>
</head>
<body><div id="equation">{markup}</div></body>
</html>"""


class PyppeteerRasterizer:
    """
    Rasterizes SVG markup to Pillow images.

    One browser is launched lazily and reused until the rasterizer is closed.
    Use either the blocking :meth:`rasterize` (closed with :meth:`close`) or
    :meth:`rasterize_async` on your own loop (closed with :meth:`close_async`);
    a browser is bound to the loop that launched it.

    Args:
        browser_args: Extra Chromium command-line arguments
        debug: Enable debug output
    """

    def __init__(self, browser_args: Optional[list] = None, debug: bool = False):
        self.browser_args = browser_args or ['--no-sandbox', '--disable-setuid-sandbox']
        self.debug = debug
        self._browser = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._loop_lock = threading.Lock()

    async def _get_browser(self):
        if self._browser is None:
            self._browser = await launch(headless=True, args=self.browser_args)
        return self._browser

    async def rasterize_async(self, markup: str, width: float, height: float, scale: float) -> Image.Image:
        """
        Render *markup* to an image of ``width x height`` points at *scale*.

        Args:
            markup: SVG markup
            width: Target width in points
            height: Target height in points
            scale: Device scale factor (2.0 for a retina-style bitmap)

        Returns:
            RGBA Pillow image of ``ceil(width * scale) x ceil(height * scale)`` pixels
        """
        browser = await self._get_browser()
        page = await browser.newPage()
        try:
            viewport_width = max(1, math.ceil(width))
            viewport_height = max(1, math.ceil(height))
            await page.setViewport({
                'width': viewport_width,
                'height': viewport_height,
                'deviceScaleFactor': scale,
            })
            await page.setContent(PAGE_TEMPLATE.format(width=width, height=height, markup=markup))

            element = await page.querySelector('#equation')
            png = await element.screenshot({'omitBackground': True})
        finally:
            await page.close()

        image = Image.open(io.BytesIO(png))
        image.load()
        if self.debug:
            logger.info(f"Rasterized equation to {image.size[0]}x{image.size[1]} px")
        return image.convert("RGBA")

    def rasterize(self, markup: str, width: float, height: float, scale: float) -> Image.Image:
        """
        Blocking variant of :meth:`rasterize_async`.

        The coroutine runs on an event loop owned by a background thread, so
        the browser it launches is reused by every blocking call until
        :meth:`close`. Safe to call from inside a running event loop.
        """
        loop = self._background_loop()
        future = asyncio.run_coroutine_threadsafe(
            self.rasterize_async(markup, width, height, scale), loop
        )
        return future.result()

    def _background_loop(self) -> asyncio.AbstractEventLoop:
        with self._loop_lock:
            if self._loop is None:
                self._loop = asyncio.new_event_loop()
                self._thread = threading.Thread(
                    target=self._loop.run_forever, name="latex-text-rasterizer", daemon=True
                )
                self._thread.start()
                if self.debug:
                    logger.info("Started rasterizer event loop")
            return self._loop

    async def close_async(self) -> None:
        """Close the browser launched on the caller's event loop, if any."""
        if self._browser is not None:
            await self._browser.close()
            self._browser = None

    def close(self) -> None:
        """Close the browser used by :meth:`rasterize` and stop its event loop."""
        with self._loop_lock:
            loop, thread = self._loop, self._thread
            self._loop = self._thread = None
        if loop is None:
            return

        asyncio.run_coroutine_threadsafe(self.close_async(), loop).result()
        loop.call_soon_threadsafe(loop.stop)
        thread.join()
        loop.close()
