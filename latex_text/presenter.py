"""
HTML presenter - composes rendered blocks into an HTML fragment or document.
"""
import html
import logging
from typing import List, Optional

from bs4 import BeautifulSoup
from jinja2 import DictLoader, Environment
from markdown_it import MarkdownIt

from .config import BlockMode, EquationNumberMode, ErrorMode, LaTeXOptions
from .escapes import replace_escapes
from .models import Block, Segment, to_points
from .theme_loader import get_css

logger = logging.getLogger(__name__)

DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{{ title }}</title>
<style>
{{ css | safe }}
</style>
</head>
<body>
{{ body | safe }}
</body>
</html>
"""


class HTMLPresenter:
    """
    Turns parsed (and usually rendered) blocks into HTML.

    Equation markup is sized for the options' x-height, so the same render
    results can be presented at any font size.
    """

    def __init__(self, options: Optional[LaTeXOptions] = None):
        self.options = options or LaTeXOptions()
        self.markdown = MarkdownIt('commonmark', {'html': False, 'typographer': True})
        self.markdown.enable(['strikethrough'])
        self.jinja_env = Environment(
            loader=DictLoader({"document.html": DOCUMENT_TEMPLATE}),
            autoescape=True,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def render_blocks(self, blocks: List[Block]) -> str:
        """Render *blocks* to an HTML fragment wrapped in ``div.latex``."""
        if self.options.block_mode is BlockMode.ALWAYS_INLINE:
            inner = "".join(self._segment_html(segment, inline=True) for block in blocks for segment in block)
            return f'<div class="latex"><div class="latex-block">{inner}</div></div>'

        parts = []
        number = self.options.equation_number_start
        for block in blocks:
            if not block.is_equation_block:
                inner = "".join(self._segment_html(segment, inline=True) for segment in block)
                parts.append(f'<div class="latex-block">{inner}</div>')
                continue

            segment = block.segments[0]
            if self.options.block_mode is BlockMode.BLOCK_TEXT:
                parts.append(f'<div class="latex-block">{self._segment_html(segment, inline=False)}</div>')
                continue

            label = None
            if segment.kind.is_numbered and self.options.equation_number_mode is not EquationNumberMode.NONE:
                label = self.options.format_equation_number(number)
                number += 1
            parts.append(self._equation_block_html(segment, label))

        return f'<div class="latex">{"".join(parts)}</div>'

    def render_document(self, blocks: List[Block], title: str = "LaTeX") -> str:
        """Render *blocks* to a standalone HTML page styled with the options' theme."""
        template = self.jinja_env.get_template("document.html")
        return template.render(
            title=title,
            css=get_css(self.options.theme),
            body=self.render_blocks(blocks),
        )

    # ------------------------------------------------------------------
    # Segments
    # ------------------------------------------------------------------
    def _equation_block_html(self, segment: Segment, label: Optional[str]) -> str:
        equation = self._segment_html(segment, inline=False)
        if label is None:
            return f'<div class="latex-equation-block">{equation}</div>'

        number = f'<span class="latex-equation-number">{html.escape(label)}</span>'
        # The hidden copy on the other side keeps the equation centred
        placeholder = f'<span class="latex-equation-number placeholder">{html.escape(label)}</span>'
        if self.options.equation_number_mode is EquationNumberMode.LEFT:
            inner = number + equation + placeholder
        else:
            inner = placeholder + equation + number
        return f'<div class="latex-equation-block">{inner}</div>'

    def _segment_html(self, segment: Segment, inline: bool) -> str:
        if not segment.kind.is_equation:
            return self._text_html(segment.text)

        result = segment.render_result
        if result is None:
            return self._source_html(segment)

        if result.has_error and self.options.error_mode is not ErrorMode.RENDERED:
            if self.options.error_mode is ErrorMode.ERROR:
                return f'<span class="latex-error">{html.escape(result.error_text)}</span>'
            return self._source_html(segment)

        if not result.has_image:
            return self._source_html(segment)

        baseline = inline or self.options.block_mode is BlockMode.ALWAYS_INLINE
        return f'<span class="latex-equation">{self._sized_svg(segment, baseline)}</span>'

    def _sized_svg(self, segment: Segment, baseline: bool) -> str:
        """Rewrite the SVG's ex-unit size to points for the configured x-height."""
        result = segment.render_result
        x_height = self.options.x_height
        width, height = result.geometry.size_in_points(x_height)

        soup = BeautifulSoup(result.markup, 'html.parser')
        svg = soup.find('svg')
        svg['width'] = f"{width:.3f}pt"
        svg['height'] = f"{height:.3f}pt"
        if baseline:
            offset = to_points(result.geometry.vertical_alignment, x_height)
            svg['style'] = f"vertical-align: {offset:.3f}pt;"
        else:
            svg['style'] = "vertical-align: 0;"

        if self.options.debug:
            logger.info(f"Sized {segment.kind} equation to {width:.1f}x{height:.1f}pt")
        return str(soup)

    def _source_html(self, segment: Segment) -> str:
        if self.options.block_mode is BlockMode.ALWAYS_INLINE:
            source = segment.original_text_trimming_newlines
        else:
            source = segment.original_text
        return f'<span class="latex-source">{html.escape(source)}</span>'

    def _text_html(self, text: str) -> str:
        if self.options.ignore_markdown:
            if not self.options.ignore_string_escaping:
                text = replace_escapes(text)
            return html.escape(text)

        # Markdown applies backslash escapes itself, so protect them when
        # they should survive
        if self.options.ignore_string_escaping:
            text = text.replace("\\", "\\\\")
        return self.markdown.renderInline(text)
