"""
LaTeX Text Package

A package for rendering text with embedded LaTeX equations to HTML.
"""

from .cache import RenderCache
from .config import BlockMode, EquationNumberMode, ErrorMode, LaTeXOptions, PlainStyle, StandardStyle
from .engine import EngineOptions, MathJaxEngine
from .latex import LaTeX, RenderState
from .models import Block, RenderResult, Segment, SegmentKind, SVGGeometry
from .parser import ParsingMode, group_blocks, parse, segment
from .presenter import HTMLPresenter
from .renderer import Renderer

__all__ = [
    'LaTeX', 'RenderState', 'LaTeXOptions', 'ErrorMode', 'BlockMode', 'EquationNumberMode',
    'PlainStyle', 'StandardStyle', 'ParsingMode', 'parse', 'segment', 'group_blocks',
    'Segment', 'SegmentKind', 'Block', 'RenderResult', 'SVGGeometry',
    'Renderer', 'RenderCache', 'MathJaxEngine', 'EngineOptions', 'HTMLPresenter',
]
