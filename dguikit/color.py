"""Colour values held in RGB or HSL form."""

from __future__ import annotations

import colorsys
import enum
from dataclasses import dataclass


class ColorSpec(enum.Enum):
    """The form in which a colour keeps its components."""

    INVALID = "invalid"
    RGB = "rgb"
    HSL = "hsl"


_NAMED_COLORS = {
    "black": (0, 0, 0, 255),
    "white": (255, 255, 255, 255),
    "red": (255, 0, 0, 255),
    "green": (0, 128, 0, 255),
    "lime": (0, 255, 0, 255),
    "blue": (0, 0, 255, 255),
    "yellow": (255, 255, 0, 255),
    "cyan": (0, 255, 255, 255),
    "magenta": (255, 0, 255, 255),
    "gray": (128, 128, 128, 255),
    "grey": (128, 128, 128, 255),
    "pink": (255, 192, 203, 255),
    "transparent": (0, 0, 0, 0),
}


def _qround(value: float) -> int:
    """Round half away from zero."""
    return int(value + 0.5) if value >= 0 else int(value - 0.5)


def _check(name: str, value: int, low: int, high: int) -> int:
    if not low <= value <= high:
        raise ValueError(f"{name} must be in [{low}, {high}], got {value}")
    return int(value)


@dataclass(frozen=True, slots=True)
class Color:
    """An immutable colour with 8-bit components.

    For RGB colours the components are red, green and blue; for HSL colours
    they are hue (-1 for achromatic, else 0..359), saturation and lightness.
    """

    spec: ColorSpec
    c1: int = 0
    c2: int = 0
    c3: int = 0
    alpha: int = 255

    @classmethod
    def from_rgb(cls, r: int, g: int, b: int, a: int = 255) -> Color:
        return cls(
            ColorSpec.RGB,
            _check("red", r, 0, 255),
            _check("green", g, 0, 255),
            _check("blue", b, 0, 255),
            _check("alpha", a, 0, 255),
        )

    @classmethod
    def from_rgba_int(cls, value: int) -> Color:
        """Build a colour from a 0xAARRGGBB integer."""
        _check("rgba", value, 0, 0xFFFFFFFF)
        return cls.from_rgb(
            (value >> 16) & 0xFF, (value >> 8) & 0xFF, value & 0xFF, (value >> 24) & 0xFF
        )

    @classmethod
    def from_hsl(cls, h: int, s: int, l: int, a: int = 255) -> Color:  # noqa: E741
        return cls(
            ColorSpec.HSL,
            _check("hue", h, -1, 359),
            _check("saturation", s, 0, 255),
            _check("lightness", l, 0, 255),
            _check("alpha", a, 0, 255),
        )

    @classmethod
    def from_name(cls, name: str) -> Color:
        """Parse ``#rgb``, ``#rrggbb``, ``#aarrggbb`` or a known colour name."""
        text = name.strip().lower()
        if text in _NAMED_COLORS:
            return cls.from_rgb(*_NAMED_COLORS[text])
        if text.startswith("#"):
            digits = text[1:]
            try:
                int(digits, 16)
            except ValueError:
                raise ValueError(f"not a colour: {name!r}") from None
            if len(digits) == 3:
                r, g, b = (int(ch * 2, 16) for ch in digits)
                return cls.from_rgb(r, g, b)
            if len(digits) == 6:
                return cls.from_rgb(int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))
            if len(digits) == 8:
                return cls.from_rgba_int(int(digits, 16))
        raise ValueError(f"not a colour: {name!r}")

    @classmethod
    def invalid(cls) -> Color:
        return cls(ColorSpec.INVALID)

    def is_valid(self) -> bool:
        return self.spec is not ColorSpec.INVALID

    def _require_valid(self) -> None:
        if not self.is_valid():
            raise ValueError("an invalid colour has no components")

    def to_rgb(self) -> Color:
        """Return the same colour in RGB form; invalid colours stay invalid."""
        if self.spec is not ColorSpec.HSL:
            return self
        h, s, l = self.c1, self.c2, self.c3  # noqa: E741
        if s == 0 or h == -1:
            return Color(ColorSpec.RGB, l, l, l, self.alpha)
        r, g, b = colorsys.hls_to_rgb(h / 360.0, l / 255.0, s / 255.0)
        return Color(ColorSpec.RGB, _qround(r * 255), _qround(g * 255), _qround(b * 255), self.alpha)

    def get_rgb(self) -> tuple[int, int, int, int]:
        self._require_valid()
        rgb = self.to_rgb()
        return rgb.c1, rgb.c2, rgb.c3, rgb.alpha

    def get_hsl(self) -> tuple[int, int, int, int]:
        self._require_valid()
        if self.spec is ColorSpec.HSL:
            return self.c1, self.c2, self.c3, self.alpha
        r, g, b = self.c1 / 255.0, self.c2 / 255.0, self.c3 / 255.0
        high, low = max(r, g, b), min(r, g, b)
        lightness = (high + low) / 2
        if high == low:
            return -1, 0, _qround(lightness * 255), self.alpha
        delta = high - low
        if lightness < 0.5:
            saturation = delta / (high + low)
        else:
            saturation = delta / (2 - high - low)
        if high == r:
            hue = (g - b) / delta
        elif high == g:
            hue = 2 + (b - r) / delta
        else:
            hue = 4 + (r - g) / delta
        hue *= 60
        if hue < 0:
            hue += 360
        return _qround(hue) % 360, _qround(saturation * 255), _qround(lightness * 255), self.alpha

    def rgba(self) -> int:
        """Return the colour as a 0xAARRGGBB integer."""
        r, g, b, a = self.get_rgb()
        return (a << 24) | (r << 16) | (g << 8) | b

    def with_alpha_f(self, alpha: float) -> Color:
        """Return a copy whose alpha is ``alpha`` in the range 0..1."""
        if not 0.0 <= alpha <= 1.0:
            raise ValueError(f"alpha must be in [0, 1], got {alpha}")
        if not self.is_valid():
            return self
        return Color(self.spec, self.c1, self.c2, self.c3, _qround(alpha * 255))

    def name(self) -> str:
        r, g, b, _ = self.get_rgb()
        return f"#{r:02x}{g:02x}{b:02x}"

    @property
    def red(self) -> int:
        return self.get_rgb()[0]

    @property
    def green(self) -> int:
        return self.get_rgb()[1]

    @property
    def blue(self) -> int:
        return self.get_rgb()[2]

    @property
    def alpha_f(self) -> float:
        return self.alpha / 255.0

    @property
    def red_f(self) -> float:
        return self.red / 255.0

    @property
    def green_f(self) -> float:
        return self.green / 255.0

    @property
    def blue_f(self) -> float:
        return self.blue / 255.0