"""
TeX to SVG typesetting engines.

The default engine runs MathJax under Node.js through the bundled
``js/tex2svg.js`` script, one process per equation.
"""
import json
import logging
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, Optional, Tuple

logger = logging.getLogger(__name__)

TEX2SVG_SCRIPT = Path(__file__).parent / "js" / "tex2svg.js"

# MathJax TeX input packages ("AllPackages")
ALL_PACKAGES: FrozenSet[str] = frozenset({
    "base", "action", "ams", "amscd", "bbox", "boldsymbol", "braket",
    "bussproofs", "cancel", "cases", "centernot", "color", "colortbl",
    "empheq", "enclose", "extpfeil", "gensymb", "html", "mathtools",
    "mhchem", "newcommand", "noerrors", "noundefined", "physics", "require",
    "setoptions", "tagformat", "textcomp", "textmacros", "unicode", "upgreek",
    "verb", "configmacros",
})

# Packages that make MathJax draw errors instead of reporting them
ERROR_SUPPRESSION_PACKAGES: FrozenSet[str] = frozenset({"noerrors", "noundefined"})


class EngineError(RuntimeError):
    """The engine failed to convert an equation for a reason other than bad TeX."""


class EngineUnavailableError(EngineError):
    """The engine could not be started at all."""


class ConversionError(EngineError):
    """The engine rejected the TeX input; ``message`` is the engine's error text."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass(frozen=True)
class EngineOptions:
    """
    TeX input processor options passed to the engine.

    ``inline_math`` is fixed to dollar signs so parentheses stay available as
    grouping symbols.
    """
    process_escapes: bool = True
    load_packages: FrozenSet[str] = ALL_PACKAGES
    inline_math: Tuple[Tuple[str, str], ...] = field(default=(("$", "$"),), init=False)

    @classmethod
    def for_error_mode(cls, process_escapes: bool = True, render_errors: bool = False) -> "EngineOptions":
        """
        Build options for a presentation error mode.

        Unless engine-drawn errors are wanted, the error-suppression packages
        are dropped so that TeX errors come back as error text.
        """
        packages = ALL_PACKAGES if render_errors else ALL_PACKAGES - ERROR_SUPPRESSION_PACKAGES
        return cls(process_escapes=process_escapes, load_packages=frozenset(packages))

    def to_dict(self) -> Dict[str, Any]:
        """Stable, JSON-serialisable snapshot (used for cache keys and the engine request)."""
        return {
            "processEscapes": self.process_escapes,
            "packages": sorted(self.load_packages),
            "inlineMath": [list(pair) for pair in self.inline_math],
        }


@dataclass(frozen=True)
class ConversionResult:
    """Markup returned by the engine plus the conversion error, if any."""
    markup: str
    error: Optional[ConversionError] = None

    @property
    def error_text(self) -> Optional[str]:
        return self.error.message if self.error is not None else None


class Engine:
    """
    Base class for typesetting engines.

    Subclasses implement :meth:`tex2svg`; :meth:`check_available` should raise
    :class:`EngineUnavailableError` when the engine cannot run.
    """

    def check_available(self) -> None:
        return None

    def tex2svg(self, text: str, display_mode: bool, options: EngineOptions) -> ConversionResult:
        raise NotImplementedError


class MathJaxEngine(Engine):
    """
    MathJax (``mathjax-full`` npm package) running under Node.js.

    Args:
        node: Node.js executable
        script: Path to the tex2svg bridge script
        timeout: Seconds to wait for one conversion (``None`` waits forever)
        debug: Enable debug output
    """

    def __init__(self, node: str = "node", script: Optional[Path] = None,
                 timeout: Optional[float] = None, debug: bool = False):
        self.node = node
        self.script = Path(script) if script else TEX2SVG_SCRIPT
        self.timeout = timeout
        self.debug = debug
        self._available: Optional[bool] = None

    def check_available(self) -> None:
        """
        Make sure Node.js and MathJax can be loaded.

        Raises:
            EngineUnavailableError: If Node.js or the mathjax-full package is missing
        """
        if self._available:
            return
        if not self.script.exists():
            raise EngineUnavailableError(f"tex2svg script not found: {self.script}")

        try:
            result = subprocess.run(
                [self.node, str(self.script), "--check"],
                capture_output=True,
                text=True,
                timeout=30,
            )
        except OSError as exc:
            raise EngineUnavailableError(f"Cannot start Node.js executable '{self.node}': {exc}") from exc
        except subprocess.TimeoutExpired as exc:
            raise EngineUnavailableError("Timed out starting MathJax") from exc

        if result.returncode != 0:
            raise EngineUnavailableError(result.stderr.strip() or "MathJax failed to load")

        self._available = True
        if self.debug:
            logger.info(f"MathJax engine ready: {result.stdout.strip()}")

    def tex2svg(self, text: str, display_mode: bool, options: EngineOptions) -> ConversionResult:
        """
        Convert TeX to SVG markup.

        Args:
            text: TeX input without delimiters
            display_mode: Typeset as a display equation
            options: TeX input processor options

        Returns:
            ConversionResult; ``error`` is set when MathJax reported a TeX error

        Raises:
            EngineUnavailableError: If Node.js cannot be started
            EngineError: If the bridge script fails or returns garbage
        """
        request = json.dumps({
            "tex": text,
            "display": display_mode,
            "options": options.to_dict(),
        })

        if self.debug:
            logger.info("Typesetting: %s", text[:50])

        try:
            result = subprocess.run(
                [self.node, str(self.script)],
                input=request,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except OSError as exc:
            raise EngineUnavailableError(f"Cannot start Node.js executable '{self.node}': {exc}") from exc
        except subprocess.TimeoutExpired as exc:
            raise EngineError(f"MathJax timed out after {self.timeout}s") from exc

        if result.returncode != 0:
            raise EngineError(result.stderr.strip() or f"tex2svg exited with status {result.returncode}")

        try:
            payload = json.loads(result.stdout)
        except json.JSONDecodeError as exc:
            raise EngineError(result.stderr or "Failed to parse tex2svg output") from exc

        if not isinstance(payload, dict):
            raise EngineError(f"Unexpected tex2svg output: {result.stdout[:100]!r}")
        markup = payload.get("svg") or ""
        if not isinstance(markup, str):
            raise EngineError(f"tex2svg returned non-string markup: {type(markup).__name__}")

        error = payload.get("error")
        return ConversionResult(
            markup=markup,
            error=ConversionError(str(error)) if error else None,
        )
