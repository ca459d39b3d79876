"""Rectangles exchanged as corner coordinates when registering screen areas."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Rect:
    """An integer rectangle whose right and bottom edges are inclusive."""

    x: int
    y: int
    width: int
    height: int

    @classmethod
    def from_corners(cls, x1: int, y1: int, x2: int, y2: int) -> Rect:
        """Build the rectangle spanning the top-left and bottom-right corners."""
        return cls(x1, y1, x2 - x1 + 1, y2 - y1 + 1)

    @property
    def left(self) -> int:
        return self.x

    @property
    def top(self) -> int:
        return self.y

    @property
    def right(self) -> int:
        return self.x + self.width - 1

    @property
    def bottom(self) -> int:
        return self.y + self.height - 1


def encode_areas(rects: Iterable[Rect]) -> list[tuple[int, int, int, int]]:
    """Encode rectangles as (x1, y1, x2, y2) tuples."""
    return [(r.left, r.top, r.right, r.bottom) for r in rects]


def decode_areas(values: Iterable[Iterable[int]]) -> list[Rect]:
    """Decode (x1, y1, x2, y2) tuples into rectangles."""
    rects = []
    for value in values:
        corners = tuple(value)
        if len(corners) != 4 or not all(isinstance(c, int) for c in corners):
            raise ValueError(f"an area needs four integer corners, got {corners!r}")
        rects.append(Rect.from_corners(*corners))
    return rects