"""
Equation delimiter grammar.

The order of :data:`GRAMMARS` matters only when two grammars match at the same
offset; earlier entries win the tie.
"""
from dataclasses import dataclass
from typing import Tuple

from .models import SegmentKind

ESCAPE_CHARACTER = "\\"


@dataclass(frozen=True)
class DelimiterGrammar:
    """
    A recognised pair of equation delimiters.

    Grammars that support recursion may contain nested copies of their own
    delimiters (``\\begin{equation}`` environments); their closing delimiter
    is chosen by balancing the nesting instead of taking the next occurrence.
    """
    kind: SegmentKind
    supports_recursion: bool = False

    @property
    def left(self) -> str:
        return self.kind.left_delimiter

    @property
    def right(self) -> str:
        return self.kind.right_delimiter


INLINE = DelimiterGrammar(SegmentKind.INLINE_EQUATION)
INLINE_PAREN = DelimiterGrammar(SegmentKind.INLINE_PAREN_EQUATION)
TEX = DelimiterGrammar(SegmentKind.TEX_EQUATION)
BLOCK = DelimiterGrammar(SegmentKind.BLOCK_EQUATION)
NAMED = DelimiterGrammar(SegmentKind.NAMED_EQUATION, supports_recursion=True)
NAMED_NO_NUMBER = DelimiterGrammar(SegmentKind.NAMED_NO_NUMBER_EQUATION, supports_recursion=True)

GRAMMARS: Tuple[DelimiterGrammar, ...] = (
    INLINE,
    INLINE_PAREN,
    TEX,
    BLOCK,
    NAMED,
    NAMED_NO_NUMBER,
)
