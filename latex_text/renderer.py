#!/usr/bin/env python3
"""
Math renderer - typesets the equations of parsed blocks and caches the results.
"""

import asyncio
import functools
import logging
from typing import List, Optional

from .cache import RenderCache, image_cache_key, svg_cache_key
from .engine import (
    ConversionError,
    ConversionResult,
    Engine,
    EngineError,
    EngineOptions,
    EngineUnavailableError,
    MathJaxEngine,
)
from .models import Block, RenderResult, Segment
from .svg import SVGParsingError, parse_geometry

logger = logging.getLogger(__name__)

DEFAULT_X_HEIGHT = 8.0
DEFAULT_DISPLAY_SCALE = 2.0


class Renderer:
    """
    Renders the equation segments of parsed blocks.

    Engine output is cached per ``(text, display mode, engine options)`` and
    rasterized images per ``(markup, x-height)``, so one typesetting pass
    serves every font size. Share one renderer (and so its caches) across
    render calls.
    """

    def __init__(
        self,
        engine: Optional[Engine] = None,
        rasterizer=None,
        svg_cache: Optional[RenderCache] = None,
        image_cache: Optional[RenderCache] = None,
        debug: bool = False,
    ):
        """
        Initialize the renderer.

        Args:
            engine: Typesetting engine (defaults to :class:`MathJaxEngine`)
            rasterizer: Object with ``rasterize(markup, width, height, scale)``;
                images are only produced when one is given
            svg_cache: Cache for engine output
            image_cache: Cache for rasterized images
            debug: Enable debug output
        """
        self.debug = debug
        self.engine = engine if engine is not None else MathJaxEngine(debug=debug)
        self.rasterizer = rasterizer
        self.svg_cache = svg_cache if svg_cache is not None else RenderCache("svg", debug=debug)
        self.image_cache = image_cache if image_cache is not None else RenderCache("image", debug=debug)
        self._engine_ready: Optional[bool] = None

    # ------------------------------------------------------------------
    # Engine state
    # ------------------------------------------------------------------
    @property
    def engine_available(self) -> bool:
        """Check (once) whether the engine can run."""
        if self._engine_ready is None:
            try:
                self.engine.check_available()
                self._engine_ready = True
            except EngineUnavailableError as e:
                logger.error(f"Typesetting engine unavailable, equations will not be rendered: {e}")
                self._engine_ready = False
        return self._engine_ready

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def render(
        self,
        blocks: List[Block],
        x_height: float = DEFAULT_X_HEIGHT,
        display_scale: float = DEFAULT_DISPLAY_SCALE,
        engine_options: Optional[EngineOptions] = None,
    ) -> List[Block]:
        """
        Render the equations of *blocks*.

        A block that fails to render is returned unchanged so the caller can
        fall back to its source text; the other blocks are unaffected.

        Args:
            blocks: Parsed blocks
            x_height: Font x-height in points (used for images only)
            display_scale: Device scale for rasterized images
            engine_options: TeX input options

        Returns:
            New list of blocks whose equation segments carry render results
        """
        engine_options = engine_options or EngineOptions()

        if not self.engine_available:
            return list(blocks)

        rendered_blocks = []
        for block in blocks:
            try:
                segments = [self._render_segment(segment, engine_options) for segment in block]
            except EngineUnavailableError as e:
                logger.error(f"Typesetting engine stopped working: {e}")
                self._engine_ready = False
                rendered_blocks.append(block)
                continue
            except (EngineError, SVGParsingError) as e:
                logger.error(f"Error rendering block {block.original_text[:50]!r}: {e}")
                rendered_blocks.append(block)
                continue
            except Exception:
                logger.exception(f"Unexpected error rendering block {block.original_text[:50]!r}")
                rendered_blocks.append(block)
                continue

            new_block = Block(segments)
            if self.rasterizer is not None:
                self._materialize_images(new_block, x_height, display_scale)
            rendered_blocks.append(new_block)

        return rendered_blocks

    async def render_async(
        self,
        blocks: List[Block],
        x_height: float = DEFAULT_X_HEIGHT,
        display_scale: float = DEFAULT_DISPLAY_SCALE,
        engine_options: Optional[EngineOptions] = None,
    ) -> List[Block]:
        """
        Non-blocking variant of :meth:`render`; the work runs in the loop's
        default executor.
        """
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            None,
            functools.partial(
                self.render,
                blocks,
                x_height=x_height,
                display_scale=display_scale,
                engine_options=engine_options,
            ),
        )

    def blocks_exist_in_cache(
        self,
        blocks: List[Block],
        x_height: float = DEFAULT_X_HEIGHT,
        engine_options: Optional[EngineOptions] = None,
    ) -> bool:
        """
        Check if every equation in *blocks* can be served from the caches.

        Images are only required when a rasterizer is configured.
        """
        engine_options = engine_options or EngineOptions()
        for block in blocks:
            for segment in block:
                if not segment.kind.is_equation:
                    continue
                key = svg_cache_key(segment.text, segment.display_mode, engine_options.to_dict())
                cached = self.svg_cache.get(key)
                if cached is None:
                    return False
                if self.rasterizer is None:
                    continue
                result = RenderResult.from_dict(cached)
                if result.has_image and image_cache_key(result.markup, x_height) not in self.image_cache:
                    return False
        return True

    def convert_to_image(
        self,
        render_result: RenderResult,
        x_height: float = DEFAULT_X_HEIGHT,
        display_scale: float = DEFAULT_DISPLAY_SCALE,
    ):
        """
        Get the rasterized image of a render result.

        Args:
            render_result: The equation's render result
            x_height: Font x-height in points
            display_scale: Device scale factor

        Returns:
            The image, or ``None`` if there is nothing to draw or no rasterizer
        """
        if not render_result.has_image:
            return None
        if self.rasterizer is None:
            logger.warning("No rasterizer configured, cannot create equation image")
            return None

        def rasterize():
            width, height = render_result.geometry.size_in_points(x_height)
            if self.debug:
                logger.info(f"Rasterizing equation at {width:.1f}x{height:.1f}pt, scale {display_scale}")
            return self.rasterizer.rasterize(render_result.markup, width, height, display_scale)

        key = image_cache_key(render_result.markup, x_height)
        return self.image_cache.get_or_compute(key, rasterize)

    def clear_svg_cache(self) -> None:
        self.svg_cache.clear()

    def clear_image_cache(self) -> None:
        self.image_cache.clear()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _render_segment(self, segment: Segment, engine_options: EngineOptions) -> Segment:
        """Render one segment; text segments pass through."""
        if not segment.kind.is_equation:
            return segment

        key = svg_cache_key(segment.text, segment.display_mode, engine_options.to_dict())
        cached = self.svg_cache.get(key)
        if cached is not None:
            return segment.with_render_result(RenderResult.from_dict(cached))

        if self.debug:
            logger.info("Rendering %s: %s", segment.kind, segment.text[:50])

        try:
            conversion = self.engine.tex2svg(segment.text, segment.display_mode, engine_options)
        except ConversionError as e:
            conversion = ConversionResult(markup="", error=e)

        result = self._make_result(conversion)
        self.svg_cache.set(key, result.to_dict())
        return segment.with_render_result(result)

    @staticmethod
    def _make_result(conversion: ConversionResult) -> RenderResult:
        if conversion.markup:
            return RenderResult(
                markup=conversion.markup,
                geometry=parse_geometry(conversion.markup),
                error_text=conversion.error_text,
            )
        if conversion.error_text is not None:
            return RenderResult(markup="", geometry=None, error_text=conversion.error_text)
        raise EngineError("Engine returned neither markup nor an error")

    def _materialize_images(self, block: Block, x_height: float, display_scale: float) -> None:
        for segment in block:
            if segment.render_result is None:
                continue
            try:
                self.convert_to_image(segment.render_result, x_height, display_scale)
            except Exception as e:
                # A failed rasterization only loses the cached bitmap
                logger.warning(f"Could not rasterize equation {segment.text[:30]!r}: {e}")
