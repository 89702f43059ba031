#!/usr/bin/env python3
"""
Render MSX charsets (CHRTBL + CLRTBL) to PNG images.

Every 8 consecutive addresses form one 8x8 character; characters are laid
out `columns` per row. Two charsets render to identical pixel arrays
if and only if they look the same on screen.

Usage:
    python render_charset.py charset.chr charset.clr output.png [--scale 2]
"""
import argparse

import numpy as np
from PIL import Image

from msx_charset import MsxCharset

# TMS9918 palette; index 0 (transparent) is rendered as black
TMS9918_PALETTE = [
    (0, 0, 0),
    (0, 0, 0),
    (62, 184, 73),
    (116, 208, 125),
    (89, 85, 224),
    (128, 118, 241),
    (185, 94, 81),
    (101, 219, 239),
    (219, 101, 89),
    (255, 137, 125),
    (204, 195, 94),
    (222, 208, 135),
    (58, 162, 65),
    (183, 102, 181),
    (204, 204, 204),
    (255, 255, 255),
]

CELL_SIZE = 8


def charset_to_pixels(chrtbl, clrtbl, palette=TMS9918_PALETTE, columns=32):
    """Render the charset to an RGB image array.

    Args:
        chrtbl: pattern bytes (bit set = foreground, bit 7 = leftmost pixel).
        clrtbl: color bytes (high nibble = foreground, low nibble = background).
        palette: 16 (r, g, b) tuples.
        columns: characters per row of the image.

    Returns:
        np.array of shape (rows * 8, columns * 8, 3), dtype=uint8.
    """
    charset = MsxCharset(chrtbl, clrtbl)
    n_lines = len(charset)
    n_chars = (n_lines + CELL_SIZE - 1) // CELL_SIZE
    columns = max(1, min(columns, n_chars))
    rows = (n_chars + columns - 1) // columns

    # Pad to whole characters (pattern 0x00, color 0x00: transparent)
    padded = rows * columns * CELL_SIZE
    patterns = np.zeros(padded, dtype=np.uint8)
    colors = np.zeros(padded, dtype=np.uint8)
    patterns[:n_lines] = charset.chrtbl
    colors[:n_lines] = charset.clrtbl

    palette_arr = np.array(palette, dtype=np.uint8)
    bits = np.unpackbits(patterns).reshape(padded, 8).astype(bool)   # (lines, 8), MSB first
    fg = palette_arr[(colors >> 4) & 0x0F]                             # (lines, 3)
    bg = palette_arr[colors & 0x0F]
    line_pixels = np.where(bits[:, :, None], fg[:, None, :], bg[:, None, :])  # (lines, 8, 3)

    # (rows, columns, 8 lines, 8 pixels, 3) -> (rows, 8, columns, 8, 3)
    tiles = line_pixels.reshape(rows, columns, CELL_SIZE, CELL_SIZE, 3)
    img = tiles.transpose(0, 2, 1, 3, 4).reshape(rows * CELL_SIZE, columns * CELL_SIZE, 3)
    return np.ascontiguousarray(img)


def charsets_look_identical(a, b):
    """True if both charsets render to the very same pixels."""
    return np.array_equal(charset_to_pixels(a.chrtbl, a.clrtbl), charset_to_pixels(b.chrtbl, b.clrtbl))


def _to_image(img, scale):
    pil_img = Image.fromarray(img, 'RGB')
    if scale > 1:
        pil_img = pil_img.resize((pil_img.width * scale, pil_img.height * scale), Image.NEAREST)
    return pil_img


def render_charset_png(chrtbl, clrtbl, output_path, scale=1, columns=32):
    """Render the charset and save it as PNG."""
    img = charset_to_pixels(chrtbl, clrtbl, columns=columns)
    _to_image(img, scale).save(output_path)


def render_comparison_png(before, after, output_path, scale=2, columns=32):
    """Save the original and the optimized charsets side by side (they should look the same)."""
    left = charset_to_pixels(before.chrtbl, before.clrtbl, columns=columns)
    right = charset_to_pixels(after.chrtbl, after.clrtbl, columns=columns)
    gap = np.full((left.shape[0], CELL_SIZE, 3), 128, dtype=np.uint8)
    img = np.concatenate([left, gap, right], axis=1)
    _to_image(img, scale).save(output_path)


def main():
    parser = argparse.ArgumentParser(description="Render MSX charset binary files to PNG")
    parser.add_argument('chrtbl', help='Binary input file (CHRTBL)')
    parser.add_argument('clrtbl', help='Binary input file (CLRTBL)')
    parser.add_argument('output', help='Output PNG file')
    parser.add_argument('--scale', type=int, default=1, help='Integer upscaling factor')
    parser.add_argument('--columns', type=int, default=32, help='Characters per row')
    args = parser.parse_args()

    with open(args.chrtbl, 'rb') as f:
        chrtbl = f.read()
    with open(args.clrtbl, 'rb') as f:
        clrtbl = f.read()

    render_charset_png(chrtbl, clrtbl, args.output, scale=args.scale, columns=args.columns)
    print(f"Saved {args.output}")


if __name__ == "__main__":
    main()
