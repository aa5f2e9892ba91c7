"""Test the pyppeteer rasterizer against a fake browser."""

import asyncio
import io

from PIL import Image

import latex_text.rasterizer as rasterizer_module
from latex_text.parser import parse
from latex_text.rasterizer import PyppeteerRasterizer
from latex_text.renderer import Renderer


class FakeElement:
    def __init__(self, page):
        self.page = page

    async def screenshot(self, options):
        self.page.screenshot_options = options
        viewport = self.page.viewport
        size = (round(viewport['width'] * viewport['deviceScaleFactor']),
                round(viewport['height'] * viewport['deviceScaleFactor']))
        buffer = io.BytesIO()
        Image.new("RGB", size, "white").save(buffer, format="PNG")
        return buffer.getvalue()


class FakePage:
    def __init__(self):
        self.viewport = None
        self.content = None
        self.closed = False

    async def setViewport(self, viewport):
        self.viewport = viewport

    async def setContent(self, content):
        self.content = content

    async def querySelector(self, selector):
        assert selector == '#equation'
        return FakeElement(self)

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self):
        self.pages = []
        self.closed = False

    async def newPage(self):
        page = FakePage()
        self.pages.append(page)
        return page

    async def close(self):
        self.closed = True


def install_fake_launch(monkeypatch):
    browsers = []

    async def fake_launch(**kwargs):
        browser = FakeBrowser()
        browsers.append(browser)
        return browser

    monkeypatch.setattr(rasterizer_module, "launch", fake_launch)
    return browsers


def test_rasterize_async(monkeypatch):
    browsers = install_fake_launch(monkeypatch)
    rasterizer = PyppeteerRasterizer()

    async def scenario():
        first = await rasterizer.rasterize_async("<svg>a</svg>", 10.4, 6.0, 2.0)
        second = await rasterizer.rasterize_async("<svg>b</svg>", 4.0, 4.0, 1.0)
        await rasterizer.close_async()
        return first, second

    first, second = asyncio.run(scenario())

    assert first.mode == "RGBA"
    assert first.size == (22, 12)
    assert second.size == (4, 4)
    # One browser serves every page
    assert len(browsers) == 1
    page = browsers[0].pages[0]
    assert page.viewport == {'width': 11, 'height': 6, 'deviceScaleFactor': 2.0}
    assert "<svg>a</svg>" in page.content
    assert page.screenshot_options == {'omitBackground': True}
    assert page.closed
    assert browsers[0].closed


def test_rasterize_blocking(monkeypatch):
    browsers = install_fake_launch(monkeypatch)
    rasterizer = PyppeteerRasterizer()
    image = rasterizer.rasterize("<svg/>", 3.0, 2.0, 2.0)
    assert image.size == (6, 4)
    assert not browsers[0].closed

    rasterizer.close()
    assert browsers[0].closed
    # Closing twice is harmless
    rasterizer.close()


def test_blocking_calls_share_one_browser(monkeypatch):
    browsers = install_fake_launch(monkeypatch)
    rasterizer = PyppeteerRasterizer()
    try:
        for size in (1.0, 2.0, 3.0):
            rasterizer.rasterize("<svg/>", size, size, 1.0)
    finally:
        rasterizer.close()

    assert len(browsers) == 1
    assert len(browsers[0].pages) == 3


def test_renderer_reuses_browser(monkeypatch, fake_engine):
    browsers = install_fake_launch(monkeypatch)
    rasterizer = PyppeteerRasterizer()
    renderer = Renderer(engine=fake_engine, rasterizer=rasterizer)
    try:
        renderer.render(parse("$a$ $bb$ $ccc$ $dddd$"))
    finally:
        rasterizer.close()

    assert len(browsers) == 1
    assert len(browsers[0].pages) == 4


def test_rasterize_blocking_inside_event_loop(monkeypatch):
    install_fake_launch(monkeypatch)
    rasterizer = PyppeteerRasterizer()

    async def scenario():
        return rasterizer.rasterize("<svg/>", 2.0, 2.0, 1.0)

    try:
        assert asyncio.run(scenario()).size == (2, 2)
    finally:
        rasterizer.close()
