"""A palette of colours per group, for standard roles and extended types."""

from __future__ import annotations

import enum
import struct

from dguikit.color import Color


class ColorGroup(enum.IntEnum):
    ACTIVE = 0
    DISABLED = 1
    INACTIVE = 2
    CURRENT = 4
    ALL = 5
    NORMAL = 0


class ColorRole(enum.IntEnum):
    WINDOW_TEXT = 0
    BUTTON = 1
    LIGHT = 2
    MIDLIGHT = 3
    DARK = 4
    MID = 5
    TEXT = 6
    BRIGHT_TEXT = 7
    BUTTON_TEXT = 8
    BASE = 9
    WINDOW = 10
    SHADOW = 11
    HIGHLIGHT = 12
    HIGHLIGHTED_TEXT = 13
    LINK = 14
    LINK_VISITED = 15
    ALTERNATE_BASE = 16
    NO_ROLE = 17
    TOOL_TIP_BASE = 18
    TOOL_TIP_TEXT = 19
    PLACEHOLDER_TEXT = 20


class ColorType(enum.IntEnum):
    NO_TYPE = 0
    ITEM_BACKGROUND = 1
    TEXT_TITLE = 2
    TEXT_TIPS = 3
    TEXT_WARNING = 4
    TEXT_LIVELY = 5
    LIGHT_LIVELY = 6
    DARK_LIVELY = 7
    FRAME_BORDER = 8
    PLACEHOLDER_TEXT = 9
    FRAME_SHADOW_BORDER = 10
    OBVIOUS_BACKGROUND = 11


_REAL_GROUPS = (ColorGroup.ACTIVE, ColorGroup.DISABLED, ColorGroup.INACTIVE)
_HEADER = b"DPAL\x01"
_ENTRY = struct.Struct(">BI")
_SIZE = len(_HEADER) + _ENTRY.size * len(_REAL_GROUPS) * (len(ColorRole) + len(ColorType))


class Palette:
    """Colours for each group of standard roles and extended colour types."""

    def __init__(self) -> None:
        self._roles: dict[tuple[ColorGroup, ColorRole], Color] = {}
        self._types: dict[tuple[ColorGroup, ColorType], Color] = {}
        self._resolved: set[tuple[ColorGroup, ColorRole]] = set()
        self._current = ColorGroup.ACTIVE

    def _store(self, role: ColorRole | ColorType) -> dict:
        if isinstance(role, ColorType):
            return self._types
        if isinstance(role, ColorRole):
            return self._roles
        raise TypeError(f"not a colour role or type: {role!r}")

    def _read_group(self, group: ColorGroup) -> ColorGroup:
        group = ColorGroup(group)
        if group is ColorGroup.CURRENT:
            return self._current
        if group not in _REAL_GROUPS:
            return ColorGroup.ACTIVE
        return group

    def color(self, group: ColorGroup, role: ColorRole | ColorType) -> Color:
        """Return the colour for ``role`` in ``group``; unset colours are invalid."""
        store = self._store(role)
        return store.get((self._read_group(group), role), Color.invalid())

    def set_color(self, group: ColorGroup, role: ColorRole | ColorType, color: Color) -> None:
        """Set a colour; ``ColorGroup.ALL`` sets it in every group."""
        store = self._store(role)
        group = ColorGroup(group)
        groups = _REAL_GROUPS if group is ColorGroup.ALL else (self._read_group(group),)
        for target in groups:
            store[(target, role)] = color
            if store is self._roles:
                self._resolved.add((target, role))

    def window(self) -> Color:
        return self.color(ColorGroup.CURRENT, ColorRole.WINDOW)

    def highlight(self) -> Color:
        return self.color(ColorGroup.CURRENT, ColorRole.HIGHLIGHT)

    @property
    def current_group(self) -> ColorGroup:
        return self._current

    def set_current_group(self, group: ColorGroup) -> None:
        group = ColorGroup(group)
        if group not in _REAL_GROUPS:
            raise ValueError(f"current group must be a concrete group, got {group!r}")
        self._current = group

    def is_resolved(self) -> bool:
        """Whether any standard role has been set explicitly."""
        return bool(self._resolved)

    def copy(self) -> Palette:
        other = Palette()
        other._roles = dict(self._roles)
        other._types = dict(self._types)
        other._resolved = set(self._resolved)
        other._current = self._current
        return other

    def to_bytes(self) -> bytes:
        """Serialise every colour as an RGBA value; HSL colours become RGB."""
        parts = [_HEADER]
        for group in _REAL_GROUPS:
            for role in ColorRole:
                parts.append(self._encode(self.color(group, role)))
        for group in _REAL_GROUPS:
            for kind in ColorType:
                parts.append(self._encode(self.color(group, kind)))
        return b"".join(parts)

    @staticmethod
    def _encode(color: Color) -> bytes:
        if not color.is_valid():
            return _ENTRY.pack(0, 0)
        return _ENTRY.pack(1, color.rgba())

    @classmethod
    def from_bytes(cls, data: bytes) -> Palette:
        if len(data) != _SIZE or not data.startswith(_HEADER):
            raise ValueError("not a serialised palette")
        palette = cls()
        entries = _ENTRY.iter_unpack(data[len(_HEADER):])
        slots = [(g, r) for g in _REAL_GROUPS for r in ColorRole]
        slots += [(g, t) for g in _REAL_GROUPS for t in ColorType]
        for (group, role), (flag, value) in zip(slots, entries):
            if flag == 1:
                palette.set_color(group, role, Color.from_rgba_int(value))
            elif flag != 0:
                raise ValueError("corrupt palette entry")
        return palette

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Palette):
            return NotImplemented
        return all(
            self.color(g, r) == other.color(g, r) for g in _REAL_GROUPS for r in ColorRole
        ) and all(
            self.color(g, t) == other.color(g, t) for g in _REAL_GROUPS for t in ColorType
        )

    __hash__ = None  # type: ignore[assignment]