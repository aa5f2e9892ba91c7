"""
Data models for parsed and rendered LaTeX text.
"""
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class SegmentKind(Enum):
    """
    The kind of a parsed segment: plain text or one of the equation forms.
    """
    TEXT = "text"
    INLINE_EQUATION = "inlineEquation"              # $x^2$
    INLINE_PAREN_EQUATION = "inlineParenEquation"   # \(x^2\)
    TEX_EQUATION = "texEquation"                    # $$x^2$$
    BLOCK_EQUATION = "blockEquation"                # \[x^2\]
    NAMED_EQUATION = "namedEquation"                # \begin{equation}x^2\end{equation}
    NAMED_NO_NUMBER_EQUATION = "namedNoNumberEquation"  # \begin{equation*}x^2\end{equation*}

    @property
    def left_delimiter(self) -> str:
        return _DELIMITERS[self][0]

    @property
    def right_delimiter(self) -> str:
        return _DELIMITERS[self][1]

    @property
    def is_inline(self) -> bool:
        """Check if segments of this kind flow with the surrounding text."""
        return self in (SegmentKind.TEXT, SegmentKind.INLINE_EQUATION, SegmentKind.INLINE_PAREN_EQUATION)

    @property
    def is_equation(self) -> bool:
        return self is not SegmentKind.TEXT

    @property
    def is_numbered(self) -> bool:
        """Check if the equation gets an equation number when numbering is on."""
        return self is SegmentKind.NAMED_EQUATION

    def __str__(self):
        return self.value


_DELIMITERS = {
    SegmentKind.TEXT: ("", ""),
    SegmentKind.INLINE_EQUATION: ("$", "$"),
    SegmentKind.INLINE_PAREN_EQUATION: ("\\(", "\\)"),
    SegmentKind.TEX_EQUATION: ("$$", "$$"),
    SegmentKind.BLOCK_EQUATION: ("\\[", "\\]"),
    SegmentKind.NAMED_EQUATION: ("\\begin{equation}", "\\end{equation}"),
    SegmentKind.NAMED_NO_NUMBER_EQUATION: ("\\begin{equation*}", "\\end{equation*}"),
}


@dataclass(frozen=True)
class SVGGeometry:
    """
    Geometry of an engine-rendered SVG.

    ``vertical_alignment``, ``width`` and ``height`` are in ex units (multiples
    of the font's x-height); ``frame`` is the SVG view box ``(x, y, w, h)``.
    """
    vertical_alignment: float
    width: float
    height: float
    frame: Tuple[float, float, float, float]

    def size_in_points(self, x_height: float) -> Tuple[float, float]:
        """Return ``(width, height)`` in points for a font with *x_height*."""
        return to_points(self.width, x_height), to_points(self.height, x_height)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "verticalAlignment": self.vertical_alignment,
            "width": self.width,
            "height": self.height,
            "frame": list(self.frame),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SVGGeometry":
        return cls(
            vertical_alignment=float(data["verticalAlignment"]),
            width=float(data["width"]),
            height=float(data["height"]),
            frame=tuple(float(v) for v in data["frame"]),
        )


def to_points(ex_value: float, x_height: float) -> float:
    """Convert a value in ex units to points."""
    return ex_value * x_height


@dataclass(frozen=True)
class RenderResult:
    """
    The engine's output for one equation.

    ``error_text`` is set when the engine reported a TeX error; the markup may
    still hold the engine's drawing of that error. A result with error text
    only (no markup, no geometry) is valid; one with neither is not.
    """
    markup: str
    geometry: Optional[SVGGeometry]
    error_text: Optional[str] = None

    def __post_init__(self):
        if not self.markup and self.error_text is None:
            raise ValueError("A render result needs markup or error text")
        if self.markup and self.geometry is None:
            raise ValueError("Rendered markup needs its geometry")

    @property
    def has_error(self) -> bool:
        return self.error_text is not None

    @property
    def has_image(self) -> bool:
        """Check if there is markup that can be drawn."""
        return bool(self.markup) and self.geometry is not None

    def to_dict(self) -> Dict[str, Any]:
        """Serialisable form stored in the SVG cache."""
        return {
            "markup": self.markup,
            "geometry": self.geometry.to_dict() if self.geometry is not None else None,
            "errorText": self.error_text,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RenderResult":
        return cls(
            markup=data["markup"],
            geometry=SVGGeometry.from_dict(data["geometry"]) if data.get("geometry") else None,
            error_text=data.get("errorText"),
        )


@dataclass(frozen=True)
class Segment:
    """
    A typed span of the input: plain text or a delimiter-stripped equation.
    """
    text: str
    kind: SegmentKind = SegmentKind.TEXT
    render_result: Optional[RenderResult] = field(default=None, compare=False)

    @classmethod
    def from_delimited(cls, text: str, kind: SegmentKind) -> "Segment":
        """
        Create a segment from source text, stripping the kind's delimiters
        when they are present.
        """
        if kind.is_equation:
            left, right = kind.left_delimiter, kind.right_delimiter
            if text.startswith(left):
                text = text[len(left):]
            if right and text.endswith(right):
                text = text[:-len(right)]
        return cls(text=text, kind=kind)

    @property
    def original_text(self) -> str:
        """The source text that produced this segment, delimiters included."""
        return f"{self.kind.left_delimiter}{self.text}{self.kind.right_delimiter}"

    @property
    def original_text_trimming_newlines(self) -> str:
        return self.original_text.strip("\r\n")

    @property
    def display_mode(self) -> bool:
        """Equations that are not inline are typeset in display mode."""
        return not self.kind.is_inline

    @property
    def is_rendered(self) -> bool:
        return self.render_result is not None

    def with_render_result(self, render_result: Optional[RenderResult]) -> "Segment":
        """Return a copy of the segment carrying *render_result*."""
        return replace(self, render_result=render_result)

    def __repr__(self):
        return f"({self.kind}, {self.text!r})"


@dataclass(frozen=True)
class Block:
    """
    A run of inline segments, or a single standalone equation segment.
    """
    segments: Tuple[Segment, ...]

    def __post_init__(self):
        # Accept any iterable but always store a tuple
        object.__setattr__(self, "segments", tuple(self.segments))

    @property
    def is_equation_block(self) -> bool:
        """Check if this block is one non-inline equation."""
        return len(self.segments) == 1 and not self.segments[0].kind.is_inline

    @property
    def render_result(self) -> Optional[RenderResult]:
        """The render result of the block's first segment, if any."""
        return self.segments[0].render_result if self.segments else None

    @property
    def original_text(self) -> str:
        return "".join(segment.original_text for segment in self.segments)

    def __len__(self):
        return len(self.segments)

    def __iter__(self):
        return iter(self.segments)
