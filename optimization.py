"""
Optimization ranges: a contiguous range of charset addresses that can be
rewritten by one line optimizer against one reference (sample) line.
"""
import logging

from msx_charset import entropy

logger = logging.getLogger(__name__)


class Optimization:
    """An inclusive range [start, end] of addresses, the optimizer and the sample line to apply.

    The charset is the original (unmodified) charset; it is only read,
    to measure the entropy of the range.
    """

    __slots__ = ('charset', 'optimizer', 'sample', 'start', 'end')

    def __init__(self, charset, optimizer, sample, start, end):
        if start > end:
            raise ValueError(f"Invalid optimization range: {start}..{end}")
        self.charset = charset
        self.optimizer = optimizer
        self.sample = sample
        self.start = start
        self.end = end

    def __repr__(self):
        return f"{self.size()}x{{{self.optimizer} {self.sample}}}@[{self.start}..{self.end}]"

    def __eq__(self, other):
        if not isinstance(other, Optimization):
            return NotImplemented
        return (self.start, self.end, self.optimizer, self.sample) == \
            (other.start, other.end, other.optimizer, other.sample)

    __hash__ = None

    def size(self):
        return self.end - self.start + 1

    def entropy(self):
        """Entropy of the original bytes this optimization targets, in bits."""
        table = self.charset.chrtbl if self.optimizer.is_pattern else self.charset.clrtbl
        return entropy(table[self.start:self.end + 1])

    def is_before(self, other):
        """True if this range ends before the other range starts."""
        return self.end < other.start

    def contains(self, other):
        return self.start <= other.start and self.end >= other.end

    def overlaps(self, other):
        """True if both ranges share at least one address. other may be any object with start/end."""
        return self.start <= other.end and other.start <= self.end

    def is_mergeable_with(self, other):
        """True if both optimizations come from the same optimizer with compatible samples.

        Samples are compatible when their target bytes are equal or inverted:
        the same pattern or its inversion for pattern optimizers,
        the same color or the swapped colors for color optimizers.
        """
        if self.optimizer is not other.optimizer:
            return False
        if self.optimizer.is_pattern:
            return other.sample.pattern in (self.sample.pattern, self.sample.inverted_pattern)
        if self.optimizer.is_color:
            return other.sample.color in (self.sample.color, self.sample.inverted_color)
        return False

    def merge_with(self, other):
        """Return an optimization spanning both ranges, with this optimization's sample."""
        if self.optimizer is not other.optimizer:
            raise ValueError(f"Cannot merge {self.optimizer} and {other.optimizer} optimizations")
        return Optimization(self.charset, self.optimizer, self.sample,
                            min(self.start, other.start), max(self.end, other.end))

    def with_range(self, start, end):
        return Optimization(self.charset, self.optimizer, self.sample, start, end)

    def minus(self, exclusion):
        """Remove the exclusion range from this optimization.

        Returns a list with this optimization (no overlap), a shortened optimization,
        two optimizations (exclusion strictly inside), or nothing (fully excluded).
        """
        if not self.overlaps(exclusion):
            return [self]

        remainder = []
        if exclusion.start > self.start:
            remainder.append(self.with_range(self.start, exclusion.start - 1))
        if exclusion.end < self.end:
            remainder.append(self.with_range(exclusion.end + 1, self.end))
        return remainder

    def apply_to(self, target, source=None):
        """Rewrite every address of the range in target.

        Lines are read from source (the original charset, by default the one
        this optimization was found in) and written to target.
        Returns the number of addresses that unexpectedly could not be optimized.
        """
        source = self.charset if source is None else source
        failures = 0
        for address in range(self.start, self.end + 1):
            candidate = source.get(address)
            optimized = self.optimizer.optimize(candidate, self.sample)
            if optimized is None:
                logger.debug("Expected %s optimization, but got None for %s at #%d", self, candidate, address)
                failures += 1
                continue
            target.set(address, optimized)
        return failures


class AddressRange:
    """A plain inclusive range of addresses, such as an exclusion."""

    __slots__ = ('start', 'end')

    def __init__(self, start, end):
        if start < 0 or end < start:
            raise ValueError(f"Invalid address range: {start}..{end}")
        self.start = start
        self.end = end

    def __repr__(self):
        return f"AddressRange({self.start}, {self.end})"

    def __eq__(self, other):
        if not isinstance(other, AddressRange):
            return NotImplemented
        return (self.start, self.end) == (other.start, other.end)

    def __hash__(self):
        return hash((self.start, self.end))

    @classmethod
    def parse(cls, text):
        """Parse '<from>..<to>' (decimal or 0x hex values) into an AddressRange."""
        parts = str(text).split('..')
        if len(parts) != 2:
            raise ValueError(f"Invalid address range (expected <from>..<to>): {text}")
        return cls(int(parts[0].strip(), 0), int(parts[1].strip(), 0))


# ---------------------------------------------------------------------------
# Comparators amongst overlapped, non-mergeable optimizations
# (key functions: the optimization with the greater key is kept)
# ---------------------------------------------------------------------------

def size_then_entropy(optimization):
    """Prefer the larger optimization, then the one that covers more entropy."""
    return optimization.size(), optimization.entropy()


def entropy_then_size(optimization):
    """Prefer the optimization that covers more entropy, then the larger one."""
    return optimization.entropy(), optimization.size()


SIZE_THEN_ENTROPY = size_then_entropy
ENTROPY_THEN_SIZE = entropy_then_size

COMPARATORS = {
    'size': SIZE_THEN_ENTROPY,
    'entropy': ENTROPY_THEN_SIZE,
}


def sort_by_start(optimizations):
    return sorted(optimizations, key=lambda optimization: optimization.start)
