"""
Range scanner: finds the maximal runs of consecutive lines that one line
optimizer can rewrite to share a byte.

Each pass walks the charset once. The reference line drifts: after every
successful rewrite it becomes the rewritten line, so the shared byte is
carried down the whole run.
"""
import logging

from optimization import Optimization, sort_by_start

logger = logging.getLogger(__name__)


def find_forward_optimizations(charset, optimizer):
    """Scan from the first to the last address.

    Returns the optimizations found, sorted by start address, non-overlapping.
    """
    optimizations = []

    n = len(charset)
    reference = charset.get(0)
    start = None
    for i in range(1, n):
        candidate = charset.get(i)
        optimized = optimizer.optimize(candidate, reference)

        if optimized is not None:
            reference = optimized
            if start is None:
                # The range starts at the previous (anchor) line
                start = i - 1
        else:
            if start is not None:
                optimizations.append(Optimization(charset, optimizer, reference, start, i - 1))
            reference = candidate
            start = None

    if start is not None:
        optimizations.append(Optimization(charset, optimizer, reference, start, n - 1))

    return sort_by_start(optimizations)


def find_backward_optimizations(charset, optimizer):
    """Scan from the last to the first address.

    Returns the optimizations found, sorted by start address, non-overlapping.
    """
    optimizations = []

    n = len(charset)
    reference = charset.get(n - 1)
    end = None
    for i in range(n - 2, -1, -1):
        candidate = charset.get(i)
        optimized = optimizer.optimize(candidate, reference)

        if optimized is not None:
            reference = optimized
            if end is None:
                # The range ends at the next (anchor) line
                end = i + 1
        else:
            if end is not None:
                optimizations.append(Optimization(charset, optimizer, reference, i + 1, end))
            reference = candidate
            end = None

    if end is not None:
        optimizations.append(Optimization(charset, optimizer, reference, 0, end))

    return sort_by_start(optimizations)


def apply_exclusion(optimizations, exclusion):
    """Remove the excluded addresses from every optimization (splitting or shortening them)."""
    if exclusion is None:
        return list(optimizations)

    remaining = []
    for optimization in optimizations:
        remaining.extend(optimization.minus(exclusion))
    if len(remaining) != len(optimizations):
        logger.debug("Exclusion %s: %d -> %d optimizations", exclusion, len(optimizations), len(remaining))
    return remaining
