"""
MSX charset model: lines of 8 pixels and the paired pattern/color tables.

Each address of an MSX charset holds two bytes:
- CHRTBL (pattern): bit set = pixel uses the foreground color, bit 7 is the leftmost pixel
- CLRTBL (color): high nibble = foreground color, low nibble = background color

Several byte pairs render the very same 8 pixels (inverted pattern with
swapped colors, or any pattern when only one color is visible), which is
what the precompressor exploits.
"""
import numpy as np

PATTERN_FG = 0xFF
PATTERN_BG = 0x00


class MsxLine:
    """A line of 8 pixels: one pattern byte and one color byte."""

    __slots__ = ('pattern', 'color')

    def __init__(self, pattern, color):
        object.__setattr__(self, 'pattern', int(pattern) & 0xFF)
        object.__setattr__(self, 'color', int(color) & 0xFF)

    def __setattr__(self, name, value):
        raise AttributeError("MsxLine is immutable")

    def __eq__(self, other):
        if not isinstance(other, MsxLine):
            return NotImplemented
        return self.pattern == other.pattern and self.color == other.color

    def __hash__(self):
        return hash((self.pattern, self.color))

    def __repr__(self):
        return f"MsxLine(0x{self.pattern:02X}, 0x{self.color:02X})"

    def __str__(self):
        return f"{self.pattern:02X} {self.fg:01X} {self.bg:01X}"

    @property
    def fg(self):
        """Foreground color index (0-15)."""
        return (self.color >> 4) & 0x0F

    @property
    def bg(self):
        """Background color index (0-15)."""
        return self.color & 0x0F

    @property
    def inverted_pattern(self):
        return self.pattern ^ 0xFF

    @property
    def inverted_color(self):
        return (self.bg << 4) | self.fg

    def single_color(self):
        """Return the only visible color of the line, or None if both colors are visible."""
        if self.pattern == PATTERN_FG:
            return self.fg
        if self.pattern == PATTERN_BG:
            return self.bg
        if self.fg == self.bg:
            return self.fg
        return None

    def inverted(self):
        """Return the line with inverted pattern and swapped colors (same pixels)."""
        return MsxLine(self.inverted_pattern, self.inverted_color)

    def with_pattern_of(self, reference):
        return MsxLine(reference.pattern, self.color)

    def with_color_of(self, reference):
        return MsxLine(self.pattern, reference.color)

    def with_color(self, color):
        return MsxLine(self.pattern, color)

    def with_single_color(self, single_color):
        return self.with_color(((single_color & 0x0F) << 4) | (single_color & 0x0F))

    def is_equivalent_to(self, other):
        """True if both lines render exactly the same 8 pixels.

        Lines are equivalent when their bytes are equal, when one is the
        inversion of the other, or when both show a single, identical color.
        """
        if self.pattern == other.pattern and self.color == other.color:
            return True
        if self.inverted_pattern == other.pattern and self.inverted_color == other.color:
            return True
        single = self.single_color()
        return single is not None and single == other.single_color()


class MsxCharset:
    """Paired CHRTBL/CLRTBL byte tables, one MsxLine per address.

    The constructor copies its inputs, so the tables passed in are never modified.
    """

    def __init__(self, chrtbl, clrtbl):
        chrtbl = np.array(bytearray(chrtbl) if isinstance(chrtbl, (bytes, bytearray)) else chrtbl,
                          dtype=np.uint8).ravel()
        clrtbl = np.array(bytearray(clrtbl) if isinstance(clrtbl, (bytes, bytearray)) else clrtbl,
                          dtype=np.uint8).ravel()
        if len(chrtbl) == 0 or len(clrtbl) == 0:
            raise ValueError("Pattern and color tables must not be empty")
        if len(chrtbl) != len(clrtbl):
            raise ValueError(
                f"Pattern and color tables differ in size ({len(chrtbl)} vs {len(clrtbl)} bytes)")
        self.chrtbl = chrtbl
        self.clrtbl = clrtbl

    def __len__(self):
        return len(self.chrtbl)

    def __eq__(self, other):
        if not isinstance(other, MsxCharset):
            return NotImplemented
        return np.array_equal(self.chrtbl, other.chrtbl) and np.array_equal(self.clrtbl, other.clrtbl)

    __hash__ = None

    def get(self, address):
        return MsxLine(self.chrtbl[address], self.clrtbl[address])

    def set(self, address, line):
        self.chrtbl[address] = line.pattern
        self.clrtbl[address] = line.color

    def lines(self):
        """Iterate over all lines, in address order."""
        for address in range(len(self.chrtbl)):
            yield self.get(address)

    def copy(self):
        return MsxCharset(self.chrtbl, self.clrtbl)

    def chrtbl_bytes(self):
        return self.chrtbl.tobytes()

    def clrtbl_bytes(self):
        return self.clrtbl.tobytes()

    def entropy(self):
        """Return (CHRTBL entropy, CLRTBL entropy), in bits."""
        return entropy(self.chrtbl), entropy(self.clrtbl)

    def is_equivalent_to(self, other):
        """True if every address of both charsets renders the same pixels."""
        if len(self) != len(other):
            return False
        return all(a.is_equivalent_to(b) for a, b in zip(self.lines(), other.lines()))


# ---------------------------------------------------------------------------
# Entropy of byte arrays
# ---------------------------------------------------------------------------

def _bits_per_byte(data):
    arr = np.asarray(bytearray(data) if isinstance(data, (bytes, bytearray)) else data, dtype=np.uint8)
    if arr.size == 0:
        return 0.0, 0
    _, counts = np.unique(arr, return_counts=True)
    probabilities = counts / arr.size
    bits = float(-np.sum(probabilities * np.log2(probabilities)))
    # (-0.0 for uniform data)
    return max(bits, 0.0), int(arr.size)


def entropy(data):
    """Order-0 Shannon entropy of a byte array, as the total number of bits.

    Empty and uniform arrays have zero entropy. Only meaningful for ranking.
    """
    bits, n = _bits_per_byte(data)
    return int(round(bits * n))


def entropy_ratio(data):
    """Order-0 Shannon entropy of a byte array, as a ratio of the 8 bits per byte (0.0 to 1.0)."""
    bits, _ = _bits_per_byte(data)
    return bits / 8.0
