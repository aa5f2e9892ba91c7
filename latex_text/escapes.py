"""Escape handling for the plain-text parts of LaTeX input."""
import re
from html import unescape

# \& \% \$ \# \_ \{ \} \~ \^ \\
ESCAPE_RE = re.compile(r"\\([&%$#_{}~^\\])")


def replace_escapes(text: str) -> str:
    """
    Replace TeX-escaped characters with the characters themselves.

    A single left-to-right pass, so ``\\\\$`` becomes ``\\$`` and not ``$``.
    """
    return ESCAPE_RE.sub(r"\1", text)


def unescape_html(text: str) -> str:
    """Decode HTML entities (``&lt;``, ``&amp;``, ``&#36;`` ...)."""
    return unescape(text)
