"""
Rendering options, styles and logging setup.
"""
import logging
import os
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable

from .engine import EngineOptions
from .parser import ParsingMode

ENV_DEBUG = "LATEX_TEXT_DEBUG"
ENV_THEME = "LATEX_TEXT_THEME"
ENV_ERROR_MODE = "LATEX_TEXT_ERROR_MODE"

LOG_FORMAT = "%(levelname)s  %(message)s"


class ErrorMode(Enum):
    """What to show for an equation the engine reported an error for."""
    RENDERED = "rendered"   # the engine's own drawing of the error
    ORIGINAL = "original"   # the equation's source text
    ERROR = "error"         # the error message


class BlockMode(Enum):
    """How standalone equation blocks are laid out."""
    BLOCK_VIEWS = "blockViews"      # centred, with optional equation numbers
    BLOCK_TEXT = "blockText"        # their own paragraph, no centring
    ALWAYS_INLINE = "alwaysInline"  # flowed with the text like inline math


class EquationNumberMode(Enum):
    NONE = "none"
    LEFT = "left"
    RIGHT = "right"


def default_equation_number_format(number: int) -> str:
    return f"({number})"


@dataclass(frozen=True)
class LaTeXOptions:
    """
    Options for parsing, rendering and presenting LaTeX text.

    ``x_height`` is the x-height of the body font in points; engine geometry
    is in ex units and gets multiplied by it at presentation time.
    """
    parsing_mode: ParsingMode = ParsingMode.ONLY_EQUATIONS
    error_mode: ErrorMode = ErrorMode.ORIGINAL
    block_mode: BlockMode = BlockMode.BLOCK_VIEWS
    equation_number_mode: EquationNumberMode = EquationNumberMode.NONE
    equation_number_start: int = 1
    format_equation_number: Callable[[int], str] = field(default=default_equation_number_format, compare=False)
    unencode_html: bool = False
    process_escapes: bool = True
    ignore_string_escaping: bool = False
    ignore_markdown: bool = False
    x_height: float = 8.0
    display_scale: float = 2.0
    theme: str = "default"
    debug: bool = False

    def engine_options(self) -> EngineOptions:
        """TeX input options matching these presentation options."""
        return EngineOptions.for_error_mode(
            process_escapes=self.process_escapes,
            render_errors=self.error_mode is ErrorMode.RENDERED,
        )

    def with_changes(self, **changes) -> "LaTeXOptions":
        return replace(self, **changes)

    @classmethod
    def from_env(cls, **overrides) -> "LaTeXOptions":
        """
        Build options from environment variables, then apply *overrides*.

        ``LATEX_TEXT_DEBUG=1`` turns on debug output, ``LATEX_TEXT_THEME``
        selects the CSS theme and ``LATEX_TEXT_ERROR_MODE`` the error mode.
        """
        values = {}
        if os.getenv(ENV_DEBUG) == "1":
            values["debug"] = True
        if os.getenv(ENV_THEME):
            values["theme"] = os.environ[ENV_THEME]
        if os.getenv(ENV_ERROR_MODE):
            try:
                values["error_mode"] = ErrorMode(os.environ[ENV_ERROR_MODE])
            except ValueError:
                raise ValueError(
                    f"Invalid {ENV_ERROR_MODE}: {os.environ[ENV_ERROR_MODE]!r} "
                    f"(expected one of {[mode.value for mode in ErrorMode]})"
                ) from None
        values.update(overrides)
        return cls(**values)


class LaTeXStyle:
    """A preset that adjusts options; subclasses override :meth:`apply_to`."""

    def apply_to(self, options: LaTeXOptions) -> LaTeXOptions:
        return options


class PlainStyle(LaTeXStyle):
    """Leaves options untouched."""


class StandardStyle(LaTeXStyle):
    """HTML-unencoded input with numbered equations on the right."""

    def apply_to(self, options: LaTeXOptions) -> LaTeXOptions:
        return options.with_changes(
            unencode_html=True,
            equation_number_mode=EquationNumberMode.RIGHT,
            format_equation_number=default_equation_number_format,
        )


def configure_logging(debug: bool = False) -> None:
    """Set up root logging the way the command-line tool does."""
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO, format=LOG_FORMAT)
