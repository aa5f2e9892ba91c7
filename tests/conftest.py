import math
import sys
from pathlib import Path

import pytest
from PIL import Image

# Ensure project root is on sys.path so `import latex_text` works
project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from latex_text.engine import ConversionError, ConversionResult, Engine, EngineError, EngineUnavailableError
from latex_text.renderer import Renderer

FAKE_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" style="vertical-align: -0.5ex;" '
    'width="{width}ex" height="1.5ex" viewBox="0 -500 {box} 700"><text>{text}</text></svg>'
)


class FakeEngine(Engine):
    """Engine double: markup width grows with the TeX length."""

    def __init__(self):
        self.available = True
        self.calls = []
        self.errors = {}        # tex -> error message
        self.failures = set()   # tex that makes the engine itself fail
        self.bad_markup = set() # tex that produces markup without geometry

    def check_available(self):
        if not self.available:
            raise EngineUnavailableError("node not found")

    def tex2svg(self, text, display_mode, options):
        self.calls.append((text, display_mode))
        if text in self.failures:
            raise EngineError(f"engine crashed on {text}")
        if text in self.bad_markup:
            return ConversionResult(markup="<span>not an svg</span>")
        markup = FAKE_SVG.format(width=len(text), box=len(text) * 500, text=text)
        if text in self.errors:
            return ConversionResult(markup=markup, error=ConversionError(self.errors[text]))
        return ConversionResult(markup=markup)


class FakeRasterizer:
    def __init__(self):
        self.calls = []

    def rasterize(self, markup, width, height, scale):
        self.calls.append((markup, width, height, scale))
        return Image.new("RGBA", (math.ceil(width * scale), math.ceil(height * scale)))


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def fake_rasterizer():
    return FakeRasterizer()


@pytest.fixture
def renderer(fake_engine):
    return Renderer(engine=fake_engine)
