import math
import random
import re
from typing import NamedTuple, Optional


_HEX_RE = re.compile(r'^#([0-9a-fA-F]{6})$')

MAX_DISTANCE = math.sqrt(3 * 255 ** 2)


class InvalidColorError(ValueError):
    pass


class Color(NamedTuple):
    r: int
    g: int
    b: int

    def to_hex(self) -> str:
        return to_hex(self)


WHITE = Color(255, 255, 255)
BLACK = Color(0, 0, 0)


def parse_hex(value) -> Color:
    """Parse a ``#rrggbb`` string (any case) into a Color."""
    if not isinstance(value, str):
        raise InvalidColorError(f'Color must be a string, got {type(value).__name__}')
    match = _HEX_RE.match(value.strip())
    if not match:
        raise InvalidColorError(f'Invalid color {value!r}, expected #rrggbb')
    digits = match.group(1)
    return Color(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def to_hex(color: Color) -> str:
    return '#{:02x}{:02x}{:02x}'.format(*color)


def random_color(rng: Optional[random.Random] = None) -> Color:
    """Uniformly random color over the full 24-bit space."""
    value = (rng or random).randrange(1 << 24)
    return Color((value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF)


def squared_distance(a: Color, b: Color) -> int:
    return (a.r - b.r) ** 2 + (a.g - b.g) ** 2 + (a.b - b.b) ** 2


def distance(a: Color, b: Color) -> float:
    """Euclidean distance in RGB space, 0 to ~441.67."""
    return math.sqrt(squared_distance(a, b))
