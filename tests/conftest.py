import numpy as np
import pytest

from msx_charset import MsxCharset

# Patterns and colors frequent in real charsets: solid lines, halves, single colors
_PATTERNS = [0x00, 0xFF, 0x0F, 0xF0, 0x3C, 0xC3, 0x81, 0x7E, 0x55, 0xAA]
_COLORS = [0x11, 0x1F, 0xF1, 0xFF, 0x4F, 0xF4, 0x64, 0x46, 0xA1, 0x1A, 0x44, 0xAA]


def _random_charset(seed, size):
    rng = np.random.default_rng(seed)
    patterns = np.array(_PATTERNS, dtype=np.uint8)[rng.integers(0, len(_PATTERNS), size)]
    colors = np.array(_COLORS, dtype=np.uint8)[rng.integers(0, len(_COLORS), size)]

    # Some fully random lines, and some runs of repeated lines
    noise = rng.random(size) < 0.1
    patterns[noise] = rng.integers(0, 256, int(noise.sum()), dtype=np.uint8)
    colors[noise] = rng.integers(0, 256, int(noise.sum()), dtype=np.uint8)
    for start in rng.integers(0, size, max(1, size // 32)):
        end = min(size, start + int(rng.integers(2, 12)))
        patterns[start:end] = patterns[start]
        colors[start:end] = colors[start]
    return MsxCharset(patterns, colors)


@pytest.fixture
def random_charset():
    """Factory: random_charset(seed, size=256) -> reproducible MsxCharset."""
    def factory(seed, size=256):
        return _random_charset(seed, size)
    return factory
