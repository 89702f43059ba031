"""
Optimization mergers: reconcile two sorted lists of optimizations into one
sorted list of non-overlapping optimizations.

- BALANCED: the generic merge, used both for forward/backward ranges of the
  same optimizer and (by default) for pattern vs. color ranges
- PRIORITIZE_PATTERN / PRIORITIZE_COLOR: keep every optimization of the
  prioritized type, and only what the other type covers outside of them
"""
from collections import deque
from enum import Enum
import logging

from optimization import SIZE_THEN_ENTROPY, sort_by_start

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Balanced (generic) merge
# ---------------------------------------------------------------------------

def _consume_already_covered(queue, last):
    """Drop the queue heads covered by the last accepted optimization; trim a head that straddles its end."""
    while queue and queue[0].end <= last.end:
        queue.popleft()
    if queue and queue[0].start <= last.end:
        head = queue.popleft()
        queue.appendleft(head.with_range(last.end + 1, head.end))


def merge_balanced(list_a, list_b, comparator=SIZE_THEN_ENTROPY):
    """Merge two sorted, internally non-overlapping lists of optimizations.

    Rules, applied to the heads of both lists:
    1. a range that ends before the other starts is kept
    2. a range contained in the other is discarded
    3. mergeable ranges are merged (the merged range replaces the earlier one)
    4. otherwise the comparator picks the range to keep; the other is discarded
       (on equal keys, list_a wins)
    """
    if not list_a:
        return sort_by_start(list_b or [])
    if not list_b:
        return sort_by_start(list_a)

    merged = []
    queue_a = deque(list_a)
    queue_b = deque(list_b)

    while queue_a or queue_b:

        if merged:
            _consume_already_covered(queue_a, merged[-1])
            _consume_already_covered(queue_b, merged[-1])

        # One list exhausted: keeps the next item of the other list
        if not queue_a:
            if queue_b:
                merged.append(queue_b.popleft())
            continue
        if not queue_b:
            merged.append(queue_a.popleft())
            continue

        a = queue_a[0]
        b = queue_b[0]

        # Non-overlapped: keeps the optimization that comes first
        if a.is_before(b):
            merged.append(queue_a.popleft())
            continue
        if b.is_before(a):
            merged.append(queue_b.popleft())
            continue

        # Overlapped, contained: discards the contained optimization
        if a.contains(b):
            queue_b.popleft()
            continue
        if b.contains(a):
            queue_a.popleft()
            continue

        # Overlapped, mergeable: merges and replaces the earlier optimization
        if a.start <= b.start and a.is_mergeable_with(b):
            _replace_head(queue_a, a.merge_with(b))
            continue
        if b.start <= a.start and b.is_mergeable_with(a):
            _replace_head(queue_b, b.merge_with(a))
            continue

        # Overlapped, non-mergeable: keeps the preferred optimization
        if comparator(a) >= comparator(b):
            merged.append(queue_a.popleft())
            queue_b.popleft()
        else:
            merged.append(queue_b.popleft())
            queue_a.popleft()

    return sort_by_start(merged)


def _replace_head(queue, merged_item):
    while queue and merged_item.contains(queue[0]):
        queue.popleft()
    queue.appendleft(merged_item)


# ---------------------------------------------------------------------------
# Prioritized merges
# ---------------------------------------------------------------------------

def _subtract_all(optimizations, prioritized):
    """Remove from every optimization the addresses covered by the prioritized ones."""
    remaining = []
    for optimization in optimizations:
        pieces = [optimization]
        for other in prioritized:
            if other.start > optimization.end:
                break
            pieces = [piece for p in pieces for piece in p.minus(other)]
            if not pieces:
                break
        remaining.extend(pieces)
    return remaining


def merge_prioritized(prioritized, other):
    """Keep every prioritized optimization, and the parts of the other optimizations they do not cover."""
    if not prioritized:
        return sort_by_start(other or [])
    if not other:
        return sort_by_start(prioritized)

    prioritized = sort_by_start(prioritized)
    remaining = _subtract_all(sort_by_start(other), prioritized)
    logger.debug("Prioritized merge: %d + %d -> %d + %d optimizations",
                 len(prioritized), len(other), len(prioritized), len(remaining))
    return sort_by_start(prioritized + remaining)


class MergePolicy(Enum):
    """How pattern optimizations and color optimizations are reconciled."""

    BALANCED = 'balanced'
    PRIORITIZE_PATTERN = 'prioritize-pattern'
    PRIORITIZE_COLOR = 'prioritize-color'

    def merge(self, pattern_optimizations, color_optimizations, comparator=SIZE_THEN_ENTROPY):
        if self is MergePolicy.PRIORITIZE_PATTERN:
            return merge_prioritized(pattern_optimizations, color_optimizations)
        if self is MergePolicy.PRIORITIZE_COLOR:
            return merge_prioritized(color_optimizations, pattern_optimizations)
        return merge_balanced(pattern_optimizations, color_optimizations, comparator)
