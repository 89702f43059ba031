import pytest

from line_optimizers import LineOptimizer
from msx_charset import MsxCharset, MsxLine
from optimization import ENTROPY_THEN_SIZE, Optimization
from optimization_mergers import MergePolicy, merge_balanced, merge_prioritized
from range_scanner import find_backward_optimizations, find_forward_optimizations

PATTERN = LineOptimizer.PATTERN_ONLY
COLOR = LineOptimizer.COLOR_ONLY


@pytest.fixture
def charset():
    # CHRTBL entropy: [0..4] uniform, [5..7] varied
    return MsxCharset([0, 0, 0, 0, 0, 1, 2, 3] + [0] * 12, [0x11] * 20)


def make(charset, start, end, optimizer=PATTERN, pattern=0x01):
    return Optimization(charset, optimizer, MsxLine(pattern, 0x11), start, end)


def ranges(optimizations):
    return [(o.start, o.end) for o in optimizations]


def assert_sorted_and_disjoint(optimizations, size):
    for previous, current in zip(optimizations, optimizations[1:]):
        assert previous.end < current.start, (previous, current)
    for optimization in optimizations:
        assert 0 <= optimization.start <= optimization.end < size


# Balanced merge

def test_empty_lists(charset):
    a = [make(charset, 4, 5), make(charset, 0, 1)]
    assert merge_balanced([], []) == []
    assert ranges(merge_balanced(a, [])) == [(0, 1), (4, 5)]
    assert ranges(merge_balanced(None, a)) == [(0, 1), (4, 5)]


def test_non_overlapped_ranges_are_all_kept(charset):
    a = [make(charset, 0, 2), make(charset, 8, 9)]
    b = [make(charset, 4, 6, pattern=0x02), make(charset, 12, 15, pattern=0x02)]
    assert ranges(merge_balanced(a, b)) == [(0, 2), (4, 6), (8, 9), (12, 15)]


def test_contained_ranges_are_discarded(charset):
    a = [make(charset, 0, 9)]
    b = [make(charset, 2, 4, pattern=0x02), make(charset, 6, 9, pattern=0x02), make(charset, 12, 13)]
    merged = merge_balanced(a, b)
    assert ranges(merged) == [(0, 9), (12, 13)]
    assert merged[0] is a[0]


def test_identical_ranges_keep_the_first_list(charset):
    a = [make(charset, 2, 6, pattern=0x01)]
    b = [make(charset, 2, 6, pattern=0x02)]
    assert merge_balanced(a, b)[0] is a[0]


@pytest.mark.parametrize("pattern", [0x01, 0xFE])
def test_mergeable_ranges_are_merged(charset, pattern):
    a = [make(charset, 0, 5, pattern=0x01)]
    b = [make(charset, 3, 9, pattern=pattern)]
    merged = merge_balanced(a, b)
    assert ranges(merged) == [(0, 9)]
    assert merged[0].sample == a[0].sample
    # The earlier range keeps its sample, whatever the list it came from
    assert merge_balanced(b[::-1], a)[0].sample == a[0].sample


def test_merged_range_swallows_contained_successors(charset):
    a = [make(charset, 0, 5), make(charset, 7, 8, pattern=0x03)]
    b = [make(charset, 4, 10)]
    assert ranges(merge_balanced(a, b)) == [(0, 10)]


def test_merged_range_trims_straddling_successor(charset):
    a = [make(charset, 0, 5), make(charset, 7, 12, pattern=0x03)]
    b = [make(charset, 4, 8)]
    merged = merge_balanced(a, b)
    assert ranges(merged) == [(0, 8), (9, 12)]
    assert merged[1].sample.pattern == 0x03


def test_overlapped_non_mergeable_tie_breaks_on_entropy(charset):
    low = make(charset, 0, 4, pattern=0x01)
    high = make(charset, 3, 7, pattern=0x02)
    assert low.size() == high.size()
    assert low.entropy() < high.entropy()

    assert merge_balanced([low], [high]) == [high]
    assert merge_balanced([high], [low]) == [high]


def test_overlapped_non_mergeable_prefers_larger_ranges(charset):
    large = make(charset, 0, 4, pattern=0x01)
    small = make(charset, 4, 7, pattern=0x02)
    assert merge_balanced([small], [large]) == [large]
    # Entropy first: the varied range wins
    assert merge_balanced([small], [large], ENTROPY_THEN_SIZE) == [small]


def test_loser_is_discarded_and_both_lists_advance(charset):
    a = [make(charset, 0, 6, pattern=0x01), make(charset, 10, 12, pattern=0x01)]
    b = [make(charset, 3, 7, pattern=0x02), make(charset, 9, 14, pattern=0x02)]
    assert ranges(merge_balanced(a, b)) == [(0, 6), (9, 14)]


def test_cross_type_ranges_are_never_merged(charset):
    pattern = [make(charset, 0, 5, PATTERN)]
    color = [make(charset, 3, 12, COLOR)]
    merged = merge_balanced(pattern, color)
    assert ranges(merged) == [(3, 12)]
    assert merged[0].optimizer is COLOR


def test_forward_and_backward_ranges_merge_into_disjoint_coverage(random_charset):
    for seed in range(10):
        charset = random_charset(seed, 400)
        for optimizer in LineOptimizer:
            merged = merge_balanced(find_forward_optimizations(charset, optimizer),
                                    find_backward_optimizations(charset, optimizer))
            assert_sorted_and_disjoint(merged, len(charset))
            assert all(o.optimizer is optimizer for o in merged)


# Prioritized merges

def test_prioritize_pattern_drops_covered_color_ranges(charset):
    pattern = [make(charset, 2, 9, PATTERN)]
    color = [make(charset, 4, 6, COLOR)]
    merged = MergePolicy.PRIORITIZE_PATTERN.merge(pattern, color)
    assert ranges(merged) == [(2, 9)]
    assert merged[0].optimizer is PATTERN


def test_prioritize_color_splits_pattern_ranges(charset):
    pattern = [make(charset, 2, 9, PATTERN)]
    color = [make(charset, 4, 6, COLOR)]
    merged = MergePolicy.PRIORITIZE_COLOR.merge(pattern, color)
    assert ranges(merged) == [(2, 3), (4, 6), (7, 9)]
    assert [o.optimizer for o in merged] == [PATTERN, COLOR, PATTERN]


def test_prioritized_merge_shortens_partially_overlapped_ranges(charset):
    prioritized = [make(charset, 3, 5, COLOR), make(charset, 9, 10, COLOR)]
    other = [make(charset, 0, 4, PATTERN), make(charset, 6, 7, PATTERN), make(charset, 8, 15, PATTERN)]
    merged = merge_prioritized(prioritized, other)
    assert ranges(merged) == [(0, 2), (3, 5), (6, 7), (8, 8), (9, 10), (11, 15)]
    assert_sorted_and_disjoint(merged, len(charset))


def test_prioritized_merge_with_empty_lists(charset):
    color = [make(charset, 4, 6, COLOR)]
    assert ranges(MergePolicy.PRIORITIZE_PATTERN.merge([], color)) == [(4, 6)]
    assert ranges(MergePolicy.PRIORITIZE_COLOR.merge(color, [])) == [(4, 6)]
    assert MergePolicy.PRIORITIZE_COLOR.merge([], []) == []


def test_balanced_policy_uses_the_generic_merge(charset):
    pattern = [make(charset, 2, 9, PATTERN)]
    color = [make(charset, 4, 6, COLOR)]
    assert ranges(MergePolicy.BALANCED.merge(pattern, color)) == [(2, 9)]


def test_policy_values():
    assert [policy.value for policy in MergePolicy] == ['balanced', 'prioritize-pattern', 'prioritize-color']
