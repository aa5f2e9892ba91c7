#!/usr/bin/env python3
"""
LaTeX text - parse, render and present text with embedded equations.
"""

import logging
import threading
from pathlib import Path
from typing import List, Optional

from .config import (
    BlockMode,
    EquationNumberMode,
    ErrorMode,
    LaTeXOptions,
    LaTeXStyle,
    configure_logging,
)
from .escapes import unescape_html
from .models import Block
from .parser import ParsingMode, parse
from .presenter import HTMLPresenter
from .renderer import Renderer
from .theme_loader import list_available_themes, validate_theme

logger = logging.getLogger(__name__)

_shared_renderer: Optional[Renderer] = None
_shared_renderer_lock = threading.Lock()


def shared_renderer() -> Renderer:
    """The renderer (and caches) used by :class:`LaTeX` when none is given."""
    global _shared_renderer
    with _shared_renderer_lock:
        if _shared_renderer is None:
            _shared_renderer = Renderer()
        return _shared_renderer


class LaTeX:
    """
    Text with embedded LaTeX equations.

    Example::

        latex = LaTeX(r"Euler: $e^{i\\pi} + 1 = 0$")
        html = latex.to_html()
    """

    def __init__(
        self,
        text: str,
        options: Optional[LaTeXOptions] = None,
        renderer: Optional[Renderer] = None,
        style: Optional[LaTeXStyle] = None,
    ):
        options = options or LaTeXOptions()
        if style is not None:
            options = style.apply_to(options)
        self.text = text
        self.options = options
        self.renderer = renderer if renderer is not None else shared_renderer()
        self.presenter = HTMLPresenter(options)

    def blocks(self) -> List[Block]:
        """Parse the text into blocks without rendering anything."""
        text = unescape_html(self.text) if self.options.unencode_html else self.text
        return parse(text, self.options.parsing_mode)

    def render(self) -> List[Block]:
        """Parse and render, blocking until every equation is done."""
        return self.renderer.render(
            self.blocks(),
            x_height=self.options.x_height,
            display_scale=self.options.display_scale,
            engine_options=self.options.engine_options(),
        )

    async def render_async(self) -> List[Block]:
        return await self.renderer.render_async(
            self.blocks(),
            x_height=self.options.x_height,
            display_scale=self.options.display_scale,
            engine_options=self.options.engine_options(),
        )

    def is_cached(self) -> bool:
        """Check if rendering would be served entirely from the caches."""
        return self.renderer.blocks_exist_in_cache(
            self.blocks(),
            x_height=self.options.x_height,
            engine_options=self.options.engine_options(),
        )

    def to_html(self, blocks: Optional[List[Block]] = None) -> str:
        """HTML fragment for *blocks*, rendering the text when none are given."""
        if blocks is None:
            blocks = self.render()
        return self.presenter.render_blocks(blocks)

    def to_document(self, blocks: Optional[List[Block]] = None, title: str = "LaTeX") -> str:
        """Standalone HTML page, styled with the options' theme."""
        if blocks is None:
            blocks = self.render()
        return self.presenter.render_document(blocks, title=title)


class RenderState:
    """
    Tracks the rendering of a :class:`LaTeX` text that may change over time.

    ``blocks`` holds the parsed blocks until a render finishes, then the
    rendered ones. A render started for text that has since been replaced
    with :meth:`update` is discarded when it completes.
    """

    def __init__(self, latex: LaTeX):
        self.latex = latex
        self.blocks: List[Block] = latex.blocks()
        self.rendered = False
        self.is_rendering = False
        self._generation = 0
        self._lock = threading.Lock()

    @property
    def debug(self) -> bool:
        return self.latex.options.debug

    def update(self, text: str) -> None:
        """Replace the text; any render in flight becomes stale."""
        latex = LaTeX(text, options=self.latex.options, renderer=self.latex.renderer)
        blocks = latex.blocks()
        with self._lock:
            self._generation += 1
            self.latex = latex
            self.blocks = blocks
            self.rendered = False
            self.is_rendering = False

    def render(self) -> List[Block]:
        """Render synchronously; does nothing while rendering or once rendered."""
        started = self._start()
        if started is None:
            return self.blocks
        generation, latex = started
        try:
            blocks = latex.render()
        except Exception:
            self._finish(generation, None)
            raise
        return self._finish(generation, blocks)

    async def render_async(self) -> List[Block]:
        """
        Render without blocking the event loop.

        Texts whose equations are all cached are rendered in place.
        """
        started = self._start()
        if started is None:
            return self.blocks
        generation, latex = started
        try:
            if latex.is_cached():
                blocks = latex.render()
            else:
                blocks = await latex.render_async()
        except Exception:
            self._finish(generation, None)
            raise
        return self._finish(generation, blocks)

    def _start(self):
        with self._lock:
            if self.rendered or self.is_rendering:
                return None
            self.is_rendering = True
            return self._generation, self.latex

    def _finish(self, generation: int, blocks: Optional[List[Block]]) -> List[Block]:
        with self._lock:
            if generation != self._generation:
                if self.debug:
                    logger.info("Discarding render of replaced text")
                return self.blocks
            self.is_rendering = False
            if blocks is not None:
                self.blocks = blocks
                self.rendered = True
            return self.blocks


def main():
    """Command-line entry point: render a text file to an HTML page."""
    import argparse
    import sys

    def _build_parser() -> argparse.ArgumentParser:
        p = argparse.ArgumentParser(prog="latex-text", description="Render text with LaTeX equations to HTML.")
        p.add_argument("input", type=Path, help="Text file to render")
        p.add_argument("--output", "-o", type=Path, help="Destination HTML path (default: input with .html suffix)")
        p.add_argument("--theme", "-t", help=f"CSS theme to use ({', '.join(list_available_themes())})")
        p.add_argument("--error-mode", choices=[mode.value for mode in ErrorMode], help="How to show equations with TeX errors")
        p.add_argument("--block-mode", choices=[mode.value for mode in BlockMode], default=BlockMode.BLOCK_VIEWS.value, help="How to lay out equation blocks")
        p.add_argument("--numbers", choices=[mode.value for mode in EquationNumberMode], default=EquationNumberMode.NONE.value, help="Equation number placement")
        p.add_argument("--parse-all", action="store_true", help="Treat the whole input as one inline equation")
        p.add_argument("--debug", action="store_true", help="Enable verbose logging")
        return p

    args = _build_parser().parse_args()
    configure_logging(args.debug)

    if not args.input.exists():
        logger.error(f"Input file '{args.input}' not found")
        sys.exit(1)

    overrides = {
        "block_mode": BlockMode(args.block_mode),
        "equation_number_mode": EquationNumberMode(args.numbers),
        "parsing_mode": ParsingMode.ALL if args.parse_all else ParsingMode.ONLY_EQUATIONS,
    }
    if args.theme:
        overrides["theme"] = args.theme
    if args.error_mode:
        overrides["error_mode"] = ErrorMode(args.error_mode)
    if args.debug:
        overrides["debug"] = True

    try:
        options = LaTeXOptions.from_env(**overrides)
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)

    if not validate_theme(options.theme):
        logger.error(f"Unknown theme '{options.theme}'. Available themes: {list_available_themes()}")
        sys.exit(1)

    latex = LaTeX(args.input.read_text(encoding="utf-8"), options=options, renderer=Renderer(debug=options.debug))
    output = args.output or args.input.with_suffix(".html")
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(latex.to_document(title=args.input.stem), encoding="utf-8")
    logger.info("✅ HTML written to %s", output)


if __name__ == "__main__":
    main()
