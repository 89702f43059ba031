#!/usr/bin/env python3
"""
MSX charset precompressor.

Rewrites a CHRTBL/CLRTBL pair into an equivalent pair (same pixels on screen)
with longer runs of identical bytes, so a byte compressor such as ZX0 or
RLE packs it better.

Usage:
    python precompress_charset.py charset.chr [charset.clr] [options]

Writes charset.chr.opt and charset.clr.opt next to the inputs.
"""
import argparse
import logging
import os
import sys

from line_optimizers import LineOptimizer
from msx_charset import MsxCharset, entropy, entropy_ratio
from optimization import COMPARATORS, SIZE_THEN_ENTROPY, AddressRange
from optimization_mergers import MergePolicy, merge_balanced
from range_scanner import apply_exclusion, find_backward_optimizations, find_forward_optimizations
from render_charset import render_comparison_png
from rle_codec import rle_size

logger = logging.getLogger(__name__)

DEFAULT_PATTERN_OPTIMIZER = LineOptimizer.NULL
DEFAULT_COLOR_OPTIMIZER = LineOptimizer.COLOR_AND_PATTERN
DEFAULT_MERGE_POLICY = MergePolicy.BALANCED


# ---------------------------------------------------------------------------
# Optimization ranges
# ---------------------------------------------------------------------------

def coverage_map(optimizations, size):
    """Return one symbol per address ('_' = not optimized), in groups of 8 (one character)."""
    cells = ['_'] * size
    for optimization in optimizations:
        for address in range(max(optimization.start, 0), min(optimization.end + 1, size)):
            cells[address] = optimization.optimizer.symbol
    return ' '.join(''.join(cells[i:i + 8]) for i in range(0, size, 8))


def _debug_coverage(label, optimizations, size):
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("%s (%d) =\n%s", label, len(optimizations), coverage_map(optimizations, size))


def find_optimizations(charset, optimizer, exclusion=None, comparator=SIZE_THEN_ENTROPY):
    """Forward and backward optimization ranges of one optimizer, excluded and merged."""
    forward = apply_exclusion(find_forward_optimizations(charset, optimizer), exclusion)
    backward = apply_exclusion(find_backward_optimizations(charset, optimizer), exclusion)
    logger.debug("%s: %d forward, %d backward optimizations", optimizer, len(forward), len(backward))
    return merge_balanced(forward, backward, comparator)


def compute_optimizations(charset,
                          pattern_optimizer=DEFAULT_PATTERN_OPTIMIZER,
                          color_optimizer=DEFAULT_COLOR_OPTIMIZER,
                          merge_policy=DEFAULT_MERGE_POLICY,
                          comparator=SIZE_THEN_ENTROPY,
                          exclusion=None):
    """Return the final, sorted and non-overlapping optimizations to apply to charset."""
    exclusion = _as_exclusion(exclusion)
    size = len(charset)

    pattern_optimizations = find_optimizations(charset, pattern_optimizer, exclusion, comparator)
    _debug_coverage("pattern optimizations", pattern_optimizations, size)

    color_optimizations = find_optimizations(charset, color_optimizer, exclusion, comparator)
    _debug_coverage("color optimizations", color_optimizations, size)

    optimizations = merge_policy.merge(pattern_optimizations, color_optimizations, comparator)
    _debug_coverage("optimizations", optimizations, size)
    return optimizations


def optimize_charset(charset,
                     pattern_optimizer=DEFAULT_PATTERN_OPTIMIZER,
                     color_optimizer=DEFAULT_COLOR_OPTIMIZER,
                     merge_policy=DEFAULT_MERGE_POLICY,
                     comparator=SIZE_THEN_ENTROPY,
                     exclusion=None):
    """Return an optimized copy of charset. The charset passed in is not modified.

    Args:
        charset: MsxCharset to optimize.
        pattern_optimizer: LineOptimizer for CHRTBL runs (NULL disables them).
        color_optimizer: LineOptimizer for CLRTBL runs (NULL disables them).
        merge_policy: MergePolicy to reconcile pattern and color runs.
        comparator: key function to choose amongst overlapped, non-mergeable runs.
        exclusion: optional AddressRange (or (from, to) pair) left untouched.
    """
    reference_entropy = charset.entropy()
    logger.debug("Source entropy: CHR = %d, CLR = %d", *reference_entropy)

    optimizations = compute_optimizations(charset, pattern_optimizer, color_optimizer,
                                          merge_policy, comparator, exclusion)
    logger.debug("Applying %d optimizations...", len(optimizations))

    # (mutable copy; lines are always read from the original charset)
    optimized = charset.copy()
    failures = 0
    for optimization in optimizations:
        failures += optimization.apply_to(optimized, charset)
    if failures:
        logger.info("%d lines could not be optimized as expected and were left unchanged", failures)

    chr_entropy, clr_entropy = optimized.entropy()
    logger.debug("Optimized entropy: CHR = %d -> %d (%+d), CLR = %d -> %d (%+d)",
                 reference_entropy[0], chr_entropy, chr_entropy - reference_entropy[0],
                 reference_entropy[1], clr_entropy, clr_entropy - reference_entropy[1])
    return optimized


def optimize_tables(chrtbl, clrtbl, **options):
    """Byte-level entry point: returns the optimized (chrtbl, clrtbl) as bytes."""
    optimized = optimize_charset(MsxCharset(chrtbl, clrtbl), **options)
    return optimized.chrtbl_bytes(), optimized.clrtbl_bytes()


def _as_exclusion(exclusion):
    if exclusion is None or isinstance(exclusion, AddressRange):
        return exclusion
    start, end = exclusion
    return AddressRange(start, end)


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------

def default_clrtbl_path(chrtbl_path):
    """Return <basename>.clr for a .chr file (case-insensitive), None otherwise."""
    base, extension = os.path.splitext(chrtbl_path)
    if extension.lower() == '.chr':
        return base + '.clr'
    return None


def _exclusion_argument(text):
    try:
        return AddressRange.parse(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser():
    parser = argparse.ArgumentParser(
        description="MSX charset precompressor: rewrites CHRTBL/CLRTBL into equivalent, "
                    "more compressible tables")
    parser.add_argument('chrtbl', help='Binary input file (CHRTBL)')
    parser.add_argument('clrtbl', nargs='?', default=None,
                        help='Binary input file (CLRTBL). Defaults to <basename>.clr for .chr inputs')

    pattern = parser.add_mutually_exclusive_group()
    pattern.add_argument('--no-pattern', dest='pattern_optimizer', action='store_const',
                         const=LineOptimizer.NULL, help='Do not use pattern optimizations (default)')
    pattern.add_argument('--pattern', dest='pattern_optimizer', action='store_const',
                         const=LineOptimizer.PATTERN_ONLY, help='Use basic pattern optimizations')
    pattern.add_argument('--pattern-and-color', dest='pattern_optimizer', action='store_const',
                         const=LineOptimizer.PATTERN_AND_COLOR,
                         help='Use pattern optimizations with color changes')

    color = parser.add_mutually_exclusive_group()
    color.add_argument('--no-color', dest='color_optimizer', action='store_const',
                       const=LineOptimizer.NULL, help='Do not use color optimizations')
    color.add_argument('--color', dest='color_optimizer', action='store_const',
                       const=LineOptimizer.COLOR_ONLY, help='Use basic color optimizations')
    color.add_argument('--color-and-pattern', dest='color_optimizer', action='store_const',
                       const=LineOptimizer.COLOR_AND_PATTERN,
                       help='Use color optimizations with pattern changes (default)')

    prioritize = parser.add_mutually_exclusive_group()
    prioritize.add_argument('--no-prioritize', dest='merge_policy', action='store_const',
                            const=MergePolicy.BALANCED,
                            help='Merge optimizations without prioritization (default)')
    prioritize.add_argument('--prioritize-pattern', dest='merge_policy', action='store_const',
                            const=MergePolicy.PRIORITIZE_PATTERN, help='Prioritize pattern optimizations')
    prioritize.add_argument('--prioritize-color', dest='merge_policy', action='store_const',
                            const=MergePolicy.PRIORITIZE_COLOR, help='Prioritize color optimizations')

    parser.add_argument('--tie-break', choices=sorted(COMPARATORS), default='size',
                        help='Choice amongst overlapped optimizations: larger size first (default) '
                             'or higher entropy first')
    parser.add_argument('--exclude', type=_exclusion_argument, default=None, metavar='FROM..TO',
                        help='Excluded range of addresses, e.g. 0..255 or 0x100..0x1FF')
    parser.add_argument('--render', default=None, metavar='PNG',
                        help='Also save a before/after preview image')
    parser.add_argument('-v', '--verbose', action='store_true', help='Verbose execution')
    parser.set_defaults(pattern_optimizer=DEFAULT_PATTERN_OPTIMIZER,
                        color_optimizer=DEFAULT_COLOR_OPTIMIZER,
                        merge_policy=DEFAULT_MERGE_POLICY)
    return parser


def read_binary(path):
    with open(path, 'rb') as f:
        return f.read()


def write_binary(path, data):
    with open(path, 'wb') as f:
        f.write(data)


def _print_summary(label, chrtbl, clrtbl):
    print(f"  {label}: CHR {len(chrtbl)} bytes (RLE {rle_size(chrtbl)}, "
          f"entropy {100.0 * entropy_ratio(chrtbl):.1f}%), "
          f"CLR {len(clrtbl)} bytes (RLE {rle_size(clrtbl)}, "
          f"entropy {100.0 * entropy_ratio(clrtbl):.1f}%)")
    logger.debug("%s entropy: CHR = %d, CLR = %d bits", label, entropy(chrtbl), entropy(clrtbl))


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(levelname)s %(name)s: %(message)s')

    chr_path = args.chrtbl
    clr_path = args.clrtbl or default_clrtbl_path(chr_path)
    if clr_path is None:
        print(f"Error: No CLRTBL file given and no default for {chr_path}")
        return 1
    for path in (chr_path, clr_path):
        if not os.path.isfile(path):
            print(f"Error: Binary input file {os.path.abspath(path)} does not exist")
            return 1

    chrtbl = read_binary(chr_path)
    clrtbl = read_binary(clr_path)
    logger.debug("Binary files read: %d bytes, %d bytes", len(chrtbl), len(clrtbl))

    print("MSX Charset Precompressor")
    print("=========================")
    print(f"Pattern optimizer: {args.pattern_optimizer}")
    print(f"Color optimizer: {args.color_optimizer}")
    print(f"Merge policy: {args.merge_policy.value}")
    if args.exclude is not None:
        print(f"Excluded addresses: {args.exclude.start}..{args.exclude.end}")

    try:
        charset = MsxCharset(chrtbl, clrtbl)
    except ValueError as e:
        print(f"Error: {e}")
        return 1

    optimized = optimize_charset(
        charset,
        pattern_optimizer=args.pattern_optimizer,
        color_optimizer=args.color_optimizer,
        merge_policy=args.merge_policy,
        comparator=COMPARATORS[args.tie_break],
        exclusion=args.exclude)

    _print_summary("Source", chrtbl, clrtbl)
    _print_summary("Optimized", optimized.chrtbl_bytes(), optimized.clrtbl_bytes())

    chr_output = chr_path + '.opt'
    clr_output = clr_path + '.opt'
    write_binary(chr_output, optimized.chrtbl_bytes())
    write_binary(clr_output, optimized.clrtbl_bytes())
    print(f"Optimized charset saved to {chr_output}, {clr_output}")

    if args.render:
        render_comparison_png(charset, optimized, args.render)
        print(f"Preview saved to {args.render}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
