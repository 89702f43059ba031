"""
Line optimizers: rewrite an MSX line into an equivalent one that shares a byte with a reference line.

Pattern optimizers aim for the reference pattern byte (CHRTBL),
color optimizers aim for the reference color byte (CLRTBL).
A rewrite either returns a line that renders the same pixels as the candidate
or None when no such line exists; None is a signal, not an error.
"""
from enum import Enum

from msx_charset import PATTERN_BG, PATTERN_FG, MsxLine


def _optimize_nothing(candidate, reference):
    return None


def _optimize_pattern_only(candidate, reference):
    # Already optimized
    if candidate.pattern == reference.pattern:
        return candidate

    # Unused pattern (both colors are the same)
    if candidate.fg == candidate.bg:
        return candidate.with_pattern_of(reference)

    return None


def _optimize_pattern_and_color(candidate, reference):
    # Already optimized
    if candidate.pattern == reference.pattern:
        return candidate

    # Inverted pattern matches
    if candidate.inverted_pattern == reference.pattern:
        return candidate.inverted()

    # Unused pattern: any single color line can take the reference pattern
    single_color = candidate.single_color()
    if single_color is not None:
        return candidate.with_pattern_of(reference).with_single_color(single_color)

    return None


def _optimize_color_only(candidate, reference):
    # Already optimized
    if candidate.color == reference.color:
        return candidate

    # All FG: only the FG color is visible
    if candidate.pattern == PATTERN_FG and candidate.fg == reference.fg:
        return candidate.with_color_of(reference)

    # All BG: only the BG color is visible
    if candidate.pattern == PATTERN_BG and candidate.bg == reference.bg:
        return candidate.with_color_of(reference)

    return None


def _optimize_color_and_pattern(candidate, reference):
    # Already optimized
    if candidate.color == reference.color:
        return candidate

    # All FG: the FG color may match either reference color
    if candidate.pattern == PATTERN_FG:
        if candidate.fg == reference.fg:
            return candidate.with_color_of(reference)
        if candidate.fg == reference.bg:
            return candidate.inverted().with_color_of(reference)
        return None

    # All BG: the BG color may match either reference color
    if candidate.pattern == PATTERN_BG:
        if candidate.bg == reference.fg:
            return candidate.inverted().with_color_of(reference)
        if candidate.bg == reference.bg:
            return candidate.with_color_of(reference)
        return None

    # Single color: becomes all FG or all BG
    if candidate.fg == candidate.bg:
        if candidate.fg == reference.fg:
            return MsxLine(PATTERN_FG, reference.color)
        if candidate.fg == reference.bg:
            return MsxLine(PATTERN_BG, reference.color)
        return None

    # Two colors: only the inverted line can match
    if candidate.inverted_color == reference.color:
        return candidate.inverted()

    return None


class LineOptimizer(Enum):
    """The available line optimizers.

    Each member is a stateless strategy: (label, symbol, is_pattern, is_color, rewrite function).
    """

    NULL = ('Null', '?', False, False, _optimize_nothing)
    PATTERN_ONLY = ('PatternOnly', 'p', True, False, _optimize_pattern_only)
    PATTERN_AND_COLOR = ('PatternAndColor', 'P', True, False, _optimize_pattern_and_color)
    COLOR_ONLY = ('ColorOnly', 'c', False, True, _optimize_color_only)
    COLOR_AND_PATTERN = ('ColorAndPattern', 'C', False, True, _optimize_color_and_pattern)

    def __init__(self, label, symbol, is_pattern, is_color, function):
        self.label = label
        self.symbol = symbol
        self.is_pattern = is_pattern
        self.is_color = is_color
        self._function = function

    def __str__(self):
        return self.label

    def optimize(self, candidate, reference):
        """Rewrite candidate to share this optimizer's target byte with reference.

        Returns the rewritten (equivalent) line, or None if it cannot be done.
        """
        if candidate is None or reference is None:
            return None
        return self._function(candidate, reference)

    def target_byte(self, line):
        """Return the byte of line this optimizer makes identical along a range."""
        return line.pattern if self.is_pattern else line.color
