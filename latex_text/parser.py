"""
Equation parser: splits text into plain-text and equation segments and groups
them into display blocks.

Both entry points are pure functions and never raise; any input that does not
contain a well-formed equation comes back as plain text.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from .grammar import ESCAPE_CHARACTER, GRAMMARS, DelimiterGrammar
from .models import Block, Segment, SegmentKind


class ParsingMode(Enum):
    """How much of the input is treated as math."""
    ONLY_EQUATIONS = "onlyEquations"  # look for delimited equations
    ALL = "all"                        # the whole input is one inline equation


@dataclass(frozen=True)
class _Match:
    """A delimited equation found in the input, as absolute offsets."""
    grammar: DelimiterGrammar
    start: int
    end: int

    def contains(self, other: "_Match") -> bool:
        """Check if *other* lies wholly inside this match (and is not the same span)."""
        if (self.start, self.end) == (other.start, other.end):
            return False
        return self.start <= other.start and other.end <= self.end


def segment(text: str) -> List[Segment]:
    """
    Split *text* into an ordered list of segments.

    At each step the earliest well-formed equation in the remaining input is
    extracted; the text before it becomes a plain-text segment and scanning
    continues after the equation's closing delimiter.

    Args:
        text: Input text possibly containing delimited equations

    Returns:
        List of segments whose original texts concatenate back to *text*
    """
    segments: List[Segment] = []
    position = 0

    while position < len(text):
        match = _next_match(text, position)
        if match is None:
            segments.append(Segment(text[position:]))
            break

        if match.start > position:
            segments.append(Segment(text[position:match.start]))
        segments.append(Segment.from_delimited(text[match.start:match.end], match.grammar.kind))
        position = match.end

    return segments


def group_blocks(segments: Iterable[Segment]) -> List[Block]:
    """
    Group segments into blocks.

    Consecutive inline segments share a block; every display equation gets a
    block of its own.

    Args:
        segments: Segments in input order

    Returns:
        List of blocks, never containing an empty block
    """
    blocks: List[Block] = []
    current_block: List[Segment] = []

    for item in segments:
        if item.kind.is_inline:
            current_block.append(item)
            continue

        # Flush the running inline block before the standalone equation
        if current_block:
            blocks.append(Block(current_block))
            current_block = []
        blocks.append(Block((item,)))

    if current_block:
        blocks.append(Block(current_block))

    return blocks


def parse(text: str, mode: ParsingMode = ParsingMode.ONLY_EQUATIONS) -> List[Block]:
    """
    Parse *text* into display blocks.

    Args:
        text: The input text
        mode: ``ALL`` renders the whole input as a single inline equation

    Returns:
        List of blocks
    """
    if mode is ParsingMode.ALL:
        segments = [Segment(text, SegmentKind.INLINE_EQUATION)] if text else []
    else:
        segments = segment(text)
    return group_blocks(segments)


# ---------------------------------------------------------------------------
# Matching helpers
# ---------------------------------------------------------------------------

def _next_match(text: str, position: int) -> Optional[_Match]:
    """Find the earliest top-level equation starting at or after *position*."""
    matches = []
    for grammar in GRAMMARS:
        match = _find_match(text, position, grammar)
        if match is not None:
            matches.append(match)

    if not matches:
        return None

    # Drop matches nested inside another grammar's match
    top_level = [m for m in matches if not any(other.contains(m) for other in matches)]

    # min() keeps the first of equal keys, so grammar order breaks ties
    return min(top_level, key=lambda m: m.start)


def _find_match(text: str, position: int, grammar: DelimiterGrammar) -> Optional[_Match]:
    """
    Find the first candidate match of *grammar* in ``text[position:]``.

    The candidate pairs the first left delimiter with the next right
    delimiter (or the balancing one for recursive grammars). A candidate that
    is escaped on either side or has no inner text is rejected outright.
    """
    left_at = text.find(grammar.left, position)
    if left_at == -1:
        return None
    inner_start = left_at + len(grammar.left)

    if grammar.supports_recursion:
        right_at = _find_balanced_right(text, position, inner_start, grammar)
    else:
        right_at = text.find(grammar.right, inner_start)
    if right_at is None or right_at == -1:
        return None

    if _is_escaped(text, left_at, position) or _is_escaped(text, right_at, position):
        return None
    if right_at == inner_start:
        return None

    return _Match(
        grammar=grammar,
        start=left_at,
        end=right_at + len(grammar.right),
    )


def _find_balanced_right(
    text: str, position: int, inner_start: int, grammar: DelimiterGrammar
) -> Optional[int]:
    """
    Return the offset of the right delimiter closing an environment opened
    just before *inner_start*.

    Unescaped nested openings raise the depth, unescaped closings lower it.
    If the environment never balances, the last unescaped closing delimiter
    is used instead.
    """
    depth = 1
    index = inner_start
    last_right = None

    while True:
        next_right = text.find(grammar.right, index)
        if next_right == -1:
            break
        next_left = text.find(grammar.left, index)

        if next_left != -1 and next_left < next_right:
            if not _is_escaped(text, next_left, position):
                depth += 1
            index = next_left + len(grammar.left)
            continue

        if not _is_escaped(text, next_right, position):
            last_right = next_right
            depth -= 1
            if depth == 0:
                return next_right
        index = next_right + len(grammar.right)

    return last_right


def _is_escaped(text: str, index: int, window_start: int) -> bool:
    """A delimiter is escaped by a backslash right before it, except at the window start."""
    return index > window_start and text[index - 1] == ESCAPE_CHARACTER
