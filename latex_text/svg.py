"""
Geometry extraction from engine-produced SVG markup.

Only the root ``<svg>`` tag is inspected. MathJax writes the geometry as::

    <svg style="vertical-align: -1.602ex;" width="2.127ex" height="4.638ex"
         viewBox="0 -1342 940 2050" ...>
"""
import re
from typing import Optional, Tuple

from .models import SVGGeometry

SVG_TAG_RE = re.compile(r"<svg\b.*?>", re.DOTALL)
ATTRIBUTE_RE = re.compile(r'([\w:-]+)\s*=\s*"(.*?)"', re.DOTALL)
VERTICAL_ALIGN_RE = re.compile(r"vertical-align\s*:\s*([^;]+)")


class SVGParsingError(ValueError):
    """Raised when engine output does not carry the expected SVG geometry."""


class MissingSVGElementError(SVGParsingError):
    """No ``<svg ...>`` tag was found in the markup."""


class MissingGeometryError(SVGParsingError):
    """The ``<svg>`` tag lacks one of style/width/height/viewBox."""


def parse_geometry(markup: str) -> SVGGeometry:
    """
    Parse the geometry of an SVG.

    Args:
        markup: SVG markup as returned by the engine

    Returns:
        SVGGeometry in ex units

    Raises:
        MissingSVGElementError: If there is no ``<svg>`` tag
        MissingGeometryError: If any geometry attribute is missing or malformed
    """
    tag_match = SVG_TAG_RE.search(markup)
    if not tag_match:
        raise MissingSVGElementError("No <svg> element found in engine output")

    vertical_alignment = width = height = frame = None
    for name, value in ATTRIBUTE_RE.findall(tag_match.group(0)):
        if name == "style":
            vertical_alignment = parse_alignment(value)
        elif name == "width":
            width = parse_ex(value)
        elif name == "height":
            height = parse_ex(value)
        elif name == "viewBox":
            frame = parse_view_box(value)

    missing = [
        attr for attr, parsed in (
            ("style", vertical_alignment),
            ("width", width),
            ("height", height),
            ("viewBox", frame),
        ) if parsed is None
    ]
    if missing:
        raise MissingGeometryError(f"SVG element is missing geometry: {', '.join(missing)}")

    return SVGGeometry(
        vertical_alignment=vertical_alignment,
        width=width,
        height=height,
        frame=frame,
    )


def parse_alignment(style: str) -> Optional[float]:
    """Parse ``"vertical-align: -1.602ex;"`` into ``-1.602``."""
    match = VERTICAL_ALIGN_RE.search(style)
    if not match:
        return None
    return parse_ex(match.group(1))


def parse_ex(value: str) -> Optional[float]:
    """Parse an ex-unit length such as ``"2.127ex"``."""
    value = value.strip()
    if value.endswith("ex"):
        value = value[:-2]
    try:
        return float(value)
    except ValueError:
        return None


def parse_view_box(value: str) -> Optional[Tuple[float, float, float, float]]:
    """Parse ``"0 -1342 940 2050"`` into a 4-tuple."""
    parts = value.split()
    if len(parts) != 4:
        return None
    try:
        x, y, w, h = (float(part) for part in parts)
    except ValueError:
        return None
    return (x, y, w, h)
