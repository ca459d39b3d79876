"""Application-wide theme, palette, attribute and size-mode handling."""

from __future__ import annotations

import enum
import functools
import logging
import os
from collections import defaultdict
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field

from dguikit.color import Color
from dguikit.palette import ColorGroup, ColorRole, ColorType, Palette

logger = logging.getLogger(__name__)


class ThemeType(enum.IntEnum):
    """Whether colours are light or dark."""

    UNKNOWN = 0
    LIGHT = 1
    DARK = 2


class Attribute(enum.IntFlag):
    """Behaviour switches; those at or above READ_ONLY_LIMIT are read-only."""

    USE_INACTIVE_COLOR_GROUP = 1 << 0
    COLOR_COMPOSITING = 1 << 1
    DONT_SAVE_APPLICATION_THEME = 1 << 2
    READ_ONLY_LIMIT = 1 << 22
    IS_DEEPIN_PLATFORM_THEME = (1 << 22) << 0
    IS_DXCB_PLATFORM = (1 << 22) << 1
    IS_X_WINDOW_PLATFORM = (1 << 22) << 2
    IS_TABLE_ENVIRONMENT = (1 << 22) << 3
    IS_DEEPIN_ENVIRONMENT = (1 << 22) << 4
    IS_SPECIAL_EFFECTS_ENVIRONMENT = (1 << 22) << 5


class SizeMode(enum.IntEnum):
    NORMAL = 0
    COMPACT = 1


@dataclass
class Environment:
    """What the read-only attributes are computed from."""

    platform_name: str = ""
    desktop_environment: str = ""
    platform_theme: str = ""
    dxcb: bool = False
    variables: Mapping[str, str] = field(default_factory=dict)


def _environment_from_os() -> Environment:
    variables = dict(os.environ)
    return Environment(
        platform_name=variables.get("QT_QPA_PLATFORM", "").split(":")[0],
        desktop_environment=variables.get("XDG_CURRENT_DESKTOP", ""),
        variables=variables,
    )


def _parse_int(text: str) -> int | None:
    try:
        return int(text.strip())
    except ValueError:
        return None


def _qround(value: float) -> int:
    return int(value + 0.5) if value >= 0 else int(value - 0.5)


# Colour adjustment -------------------------------------------------------

def _adjust_value(base: int, increment: int, maximum: int = 255) -> int:
    if increment > 0:
        return int((maximum - base) * increment / 100.0 + base)
    return int(base * (1 + increment / 100.0))


def _adjust_hsl(base: Color, hue: int, saturation: int, lightness: int, alpha: int = 0) -> Color:
    if not (hue or saturation or lightness or alpha):
        return base
    h, s, l, a = base.get_hsl()  # noqa: E741
    h = _adjust_value(h, hue, 359) if h > 0 else h
    s = _adjust_value(s, saturation)
    l = _adjust_value(l, lightness)  # noqa: E741
    return Color.from_hsl(h, s, l, a)


def _adjust_rgb(base: Color, red: int, green: int, blue: int, alpha: int = 0) -> Color:
    if not (red or green or blue or alpha):
        return base
    r, g, b, a = base.get_rgb()
    return Color.from_rgb(
        _adjust_value(r, red),
        _adjust_value(g, green),
        _adjust_value(b, blue),
        _adjust_value(a, alpha),
    )


def _check_increments(*values: int) -> None:
    for value in values:
        if not -100 <= value <= 100:
            raise ValueError(f"adjustment must be in [-100, 100], got {value}")


def adjust_color(
    base: Color,
    hue: int = 0,
    saturation: int = 0,
    lightness: int = 0,
    red: int = 0,
    green: int = 0,
    blue: int = 0,
    alpha: int = 0,
) -> Color:
    """Shift a colour's components by percentages in -100..100.

    -100 moves a component to 0 and 100 moves it to its maximum.
    """
    _check_increments(hue, saturation, lightness, red, green, blue, alpha)
    if not base.is_valid():
        return base
    # Adjust in the colour's own form first to avoid conversion loss.
    if base.spec.value == "hsl":
        shifted = _adjust_hsl(base, hue, saturation, lightness, alpha)
        return _adjust_rgb(shifted, red, green, blue)
    shifted = _adjust_rgb(base, red, green, blue, alpha)
    return _adjust_hsl(shifted, hue, saturation, lightness)


def adjust_image(
    image: Sequence[Sequence[int]],
    hue: int = 0,
    saturation: int = 0,
    lightness: int = 0,
    red: int = 0,
    green: int = 0,
    blue: int = 0,
    alpha: int = 0,
) -> list[list[int]]:
    """Adjust every non-transparent 0xAARRGGBB pixel of an image given as rows."""
    _check_increments(hue, saturation, lightness, red, green, blue, alpha)
    rows = [list(row) for row in image]
    if not rows or not (hue or saturation or lightness or red or green or blue or alpha):
        return rows
    return [
        [
            pixel
            if (pixel >> 24) & 0xFF == 0
            else adjust_color(
                Color.from_rgba_int(pixel), hue, saturation, lightness, red, green, blue, alpha
            ).rgba()
            for pixel in row
        ]
        for row in rows
    ]


def _components(color: Color) -> tuple[int, int, int, int]:
    if not color.is_valid():
        return 0, 0, 0, 255
    return color.get_rgb()


def blend_color(substrate: Color, superstratum: Color) -> Color:
    """Lay ``superstratum`` over ``substrate``; the result keeps the substrate's alpha."""
    top = superstratum.to_rgb()
    if top.alpha >= 255:
        return top
    r1, g1, b1, a1 = _components(substrate)
    r2, g2, b2, _ = _components(top)
    top_weight = top.alpha_f
    weight = 1 - top_weight
    return Color.from_rgb(
        int(weight * r1 + top_weight * r2),
        int(weight * g1 + top_weight * g2),
        int(weight * b1 + top_weight * b2),
        a1,
    )


def to_color_type(value: Color | Palette) -> ThemeType:
    """Classify a colour, or a palette's window colour, as light or dark."""
    if isinstance(value, Palette):
        value = value.window()
    if not value.is_valid():
        return ThemeType.UNKNOWN
    luminance = 0.299 * value.red_f + 0.587 * value.green_f + 0.114 * value.blue_f
    if _qround(luminance * 255) > 191:
        return ThemeType.LIGHT
    return ThemeType.DARK


# Standard palettes -------------------------------------------------------

def _rgba(r: int, g: int, b: int, fraction: float) -> Color:
    return Color.from_rgb(r, g, b, int(fraction * 255))


_WHITE = Color.from_rgb(255, 255, 255)
_BLACK = Color.from_rgb(0, 0, 0)
_hex = Color.from_name

_LIGHT_ROLES = {
    ColorRole.WINDOW_TEXT: _rgba(0, 0, 0, 0.7),
    ColorRole.BUTTON: _hex("#e5e5e5"),
    ColorRole.LIGHT: _hex("#e6e6e6"),
    ColorRole.MIDLIGHT: _hex("#e5e5e5"),
    ColorRole.DARK: _hex("#e3e3e3"),
    ColorRole.MID: _hex("#e4e4e4"),
    ColorRole.TEXT: _rgba(0, 0, 0, 0.7),
    ColorRole.BRIGHT_TEXT: _BLACK,
    ColorRole.BUTTON_TEXT: _rgba(0, 0, 0, 0.7),
    ColorRole.BASE: _WHITE,
    ColorRole.WINDOW: _hex("#f8f8f8"),
    ColorRole.SHADOW: _rgba(0, 0, 0, 0.05),
    ColorRole.HIGHLIGHT: _hex("#0081ff"),
    ColorRole.HIGHLIGHTED_TEXT: _WHITE,
    ColorRole.LINK: _hex("#0082fa"),
    ColorRole.LINK_VISITED: _hex("#ad4579"),
    ColorRole.ALTERNATE_BASE: _rgba(0, 0, 0, 0.03),
    ColorRole.NO_ROLE: _WHITE,
    ColorRole.TOOL_TIP_BASE: _rgba(255, 255, 255, 0.8),
    ColorRole.TOOL_TIP_TEXT: _rgba(0, 0, 0, 0.85),
}

_DARK_ROLES = {
    ColorRole.WINDOW_TEXT: _rgba(255, 255, 255, 0.7),
    ColorRole.BUTTON: _hex("#444444"),
    ColorRole.LIGHT: _hex("#484848"),
    ColorRole.MIDLIGHT: _hex("#474747"),
    ColorRole.DARK: _hex("#414141"),
    ColorRole.MID: _hex("#434343"),
    ColorRole.TEXT: _rgba(255, 255, 255, 0.7),
    ColorRole.BRIGHT_TEXT: _WHITE,
    ColorRole.BUTTON_TEXT: _rgba(255, 255, 255, 0.7),
    ColorRole.BASE: _hex("#282828"),
    ColorRole.WINDOW: _hex("#252525"),
    ColorRole.SHADOW: _rgba(0, 0, 0, 0.05),
    ColorRole.HIGHLIGHT: _hex("#0081ff"),
    ColorRole.HIGHLIGHTED_TEXT: _hex("#F1F6FF"),
    ColorRole.LINK: _hex("#0082fa"),
    ColorRole.LINK_VISITED: _hex("#ad4579"),
    ColorRole.ALTERNATE_BASE: _rgba(0, 0, 0, 0.05),
    ColorRole.NO_ROLE: _BLACK,
    ColorRole.TOOL_TIP_BASE: _rgba(45, 45, 45, 0.8),
    ColorRole.TOOL_TIP_TEXT: _rgba(255, 255, 255, 0.85),
}

_LIGHT_TYPES = {
    ColorType.NO_TYPE: Color.invalid(),
    ColorType.ITEM_BACKGROUND: _rgba(0, 0, 0, 0.03),
    ColorType.TEXT_TITLE: _rgba(0, 0, 0, 0.85),
    ColorType.TEXT_TIPS: _rgba(0, 0, 0, 0.6),
    ColorType.TEXT_WARNING: _hex("#FF5736"),
    ColorType.TEXT_LIVELY: _WHITE,
    ColorType.LIGHT_LIVELY: _hex("#0081FF"),
    ColorType.DARK_LIVELY: _hex("#0081FF"),
    ColorType.FRAME_BORDER: _rgba(0, 0, 0, 0.05),
    ColorType.PLACEHOLDER_TEXT: _rgba(85, 85, 85, 0.4),
    ColorType.FRAME_SHADOW_BORDER: _rgba(0, 0, 0, 0.1),
    ColorType.OBVIOUS_BACKGROUND: _rgba(0, 0, 0, 0.1),
}

_DARK_TYPES = {
    ColorType.NO_TYPE: Color.invalid(),
    ColorType.ITEM_BACKGROUND: _rgba(255, 255, 255, 0.05),
    ColorType.TEXT_TITLE: _rgba(255, 255, 255, 0.85),
    ColorType.TEXT_TIPS: _rgba(255, 255, 255, 0.6),
    ColorType.TEXT_WARNING: _hex("#E43F2E"),
    ColorType.TEXT_LIVELY: _WHITE,
    ColorType.LIGHT_LIVELY: _hex("#0059d2"),
    ColorType.DARK_LIVELY: _hex("#0059d2"),
    ColorType.FRAME_BORDER: _rgba(255, 255, 255, 0.1),
    ColorType.PLACEHOLDER_TEXT: _rgba(192, 198, 212, 0.4),
    ColorType.FRAME_SHADOW_BORDER: _rgba(0, 0, 0, 0.8),
    ColorType.OBVIOUS_BACKGROUND: _rgba(255, 255, 255, 0.1),
}


def _composite_role(role: ColorRole, color: Color, kind: ThemeType) -> Color:
    light = kind is ThemeType.LIGHT
    if role is ColorRole.WINDOW:
        return adjust_color(color, 0, 0, 0 if light else -10, 0, 0, 0, -20)
    if role is ColorRole.BASE:
        return adjust_color(color, 0, 0, 0, 0, 0, 0, -20)
    if role in (ColorRole.WINDOW_TEXT, ColorRole.TEXT):
        return adjust_color(color, 0, 0, -20 if light else 20, 0, 0, 0, -20)
    if role is ColorRole.BUTTON_TEXT:
        if light:
            return adjust_color(color, 0, 0, -20, 0, 0, 0, -20)
        return adjust_color(color, 0, 0, 20, 0, 0, 0, 0)
    if role in (ColorRole.BUTTON, ColorRole.LIGHT, ColorRole.MID, ColorRole.MIDLIGHT, ColorRole.DARK):
        return adjust_color(color, 0, 0, -20, 0, 0, 0, -40)
    return color


def _composite_type(kind_of_color: ColorType, color: Color, kind: ThemeType) -> Color:
    light = kind is ThemeType.LIGHT
    if kind_of_color is ColorType.ITEM_BACKGROUND:
        return adjust_color(color, 0, 0, 100, 0, 0, 0, -80 if light else -90)
    if kind_of_color is ColorType.TEXT_TITLE:
        return adjust_color(color, 0, 0, -20, 0, 0, 0, -20)
    if kind_of_color is ColorType.TEXT_TIPS:
        if light:
            return adjust_color(color, 0, 0, -40, 0, 0, 0, -40)
        return adjust_color(color, 0, 0, 40, 0, 0, 0, -50)
    return color


@functools.lru_cache(maxsize=None)
def _build_standard(kind: ThemeType, compositing: bool, use_inactive: bool) -> Palette:
    if kind is ThemeType.DARK:
        roles, types = _DARK_ROLES, _DARK_TYPES
    else:
        roles, types = _LIGHT_ROLES, _LIGHT_TYPES
    palette = Palette()
    for role in ColorRole:
        # Placeholder text lives among the extended colour types instead.
        if role is ColorRole.PLACEHOLDER_TEXT:
            continue
        color = roles[role]
        if compositing:
            color = _composite_role(role, color, kind)
        palette.set_color(ColorGroup.ACTIVE, role, color)
        generate_palette_color(palette, role, kind, use_inactive)
    for kind_of_color in ColorType:
        color = types[kind_of_color]
        if compositing:
            color = _composite_type(kind_of_color, color, kind)
        palette.set_color(ColorGroup.ACTIVE, kind_of_color, color)
        generate_palette_color(palette, kind_of_color, kind, use_inactive)
    return palette


def _standard(kind: ThemeType, compositing: bool, use_inactive: bool) -> Palette:
    kind = ThemeType(kind)
    if kind is ThemeType.UNKNOWN:
        return Palette()
    return _build_standard(kind, bool(compositing), bool(use_inactive)).copy()


def standard_palette(kind: ThemeType, compositing: bool = False) -> Palette:
    """Return the built-in light or dark palette; an unknown type gives an empty one."""
    return _standard(kind, compositing, True)


def _generate_derived(
    palette: Palette, role: ColorRole | ColorType, kind: ThemeType, use_inactive: bool
) -> None:
    if kind is ThemeType.UNKNOWN:
        kind = to_color_type(palette)
    if kind is ThemeType.DARK:
        window = _DARK_ROLES[ColorRole.WINDOW]
        disabled_mask, inactive_mask = window.with_alpha_f(0.7), window.with_alpha_f(0.6)
    else:
        window = _LIGHT_ROLES[ColorRole.WINDOW]
        disabled_mask, inactive_mask = window.with_alpha_f(0.6), window.with_alpha_f(0.4)

    color = palette.color(ColorGroup.NORMAL, role)
    palette.set_color(ColorGroup.DISABLED, role, blend_color(color, disabled_mask))
    # Compared by value, so the extended type sharing the text role's index matches too.
    if int(role) == ColorRole.TEXT:
        palette.set_color(ColorGroup.DISABLED, role, adjust_color(color, 0, 0, 0, 0, 0, 0, -60))
    if use_inactive:
        palette.set_color(ColorGroup.INACTIVE, role, blend_color(color, inactive_mask))
    else:
        palette.set_color(ColorGroup.INACTIVE, role, color)


def generate_palette_color(
    palette: Palette,
    role: ColorRole | ColorType,
    kind: ThemeType = ThemeType.UNKNOWN,
    use_inactive: bool = True,
) -> None:
    """Fill the disabled and inactive colours of ``role`` from its normal colour."""
    kind = ThemeType(kind)
    if isinstance(role, ColorRole):
        if role is ColorRole.WINDOW:
            window = palette.color(ColorGroup.NORMAL, role)
            palette.set_color(ColorGroup.DISABLED, role, window)
            palette.set_color(ColorGroup.INACTIVE, role, window)
            return
        if role is ColorRole.HIGHLIGHT and to_color_type(palette) is ThemeType.DARK:
            # A dark palette's highlight is toned down so it does not glare.
            highlight = palette.highlight()
            if highlight.is_valid():
                palette.set_color(ColorGroup.ALL, role, adjust_color(highlight, 0, 0, -20, 0, 0, 0, 0))
    elif not isinstance(role, ColorType):
        raise TypeError(f"not a colour role or type: {role!r}")
    _generate_derived(palette, role, kind, use_inactive)


def generate_palette(
    palette: Palette, kind: ThemeType = ThemeType.UNKNOWN, use_inactive: bool = True
) -> None:
    """Fill the disabled and inactive colours of every role and type."""
    kind = ThemeType(kind)
    if kind is ThemeType.UNKNOWN:
        kind = to_color_type(palette)
    for role in ColorRole:
        generate_palette_color(palette, role, kind, use_inactive)
    for kind_of_color in ColorType:
        generate_palette_color(palette, kind_of_color, kind, use_inactive)


# The helper --------------------------------------------------------------

_SIGNALS = frozenset(
    {"theme_type_changed", "palette_type_changed", "application_palette_changed", "size_mode_changed"}
)


class ApplicationHelper:
    """Holds an application's theme choices and notifies listeners of changes."""

    def __init__(
        self,
        environment: Environment | None = None,
        *,
        theme_name: str = "",
        active_color: Color | None = None,
        system_size_mode: SizeMode = SizeMode.NORMAL,
    ) -> None:
        self.environment = environment if environment is not None else _environment_from_os()
        self.theme_name = theme_name
        self.active_color = active_color if active_color is not None else Color.invalid()
        self._attributes = Attribute.USE_INACTIVE_COLOR_GROUP
        self._app_palette: Palette | None = None
        self._palette_type = ThemeType.UNKNOWN
        self._explicit_size_mode: SizeMode | None = None
        self._system_size_mode = SizeMode(system_size_mode)
        self._slots: dict[str, list[Callable[..., object]]] = defaultdict(list)

    def connect(self, signal: str, callback: Callable[..., object]) -> None:
        """Call ``callback`` whenever ``signal`` is emitted."""
        if signal not in _SIGNALS:
            raise ValueError(f"unknown signal: {signal!r}")
        self._slots[signal].append(callback)

    def _emit(self, signal: str, *args: object) -> None:
        for callback in list(self._slots[signal]):
            callback(*args)

    # Attributes

    def set_attribute(self, attribute: Attribute, enable: bool) -> None:
        attribute = Attribute(attribute)
        if attribute >= Attribute.READ_ONLY_LIMIT:
            logger.warning("You are setting for the read-only option.")
            return
        if enable:
            self._attributes |= attribute
        else:
            self._attributes &= ~attribute

    def test_attribute(self, attribute: Attribute) -> bool:
        attribute = Attribute(attribute)
        env = self.environment
        if attribute is Attribute.IS_X_WINDOW_PLATFORM:
            return env.platform_name in ("xcb", "dxcb")
        if attribute is Attribute.IS_DXCB_PLATFORM:
            return env.platform_name == "dxcb" or env.dxcb
        if attribute is Attribute.IS_TABLE_ENVIRONMENT:
            return env.desktop_environment.lower().endswith("tablet")
        if attribute is Attribute.IS_DEEPIN_PLATFORM_THEME:
            if not env.platform_name:
                return False
            return "QDeepinTheme" in env.platform_theme
        if attribute is Attribute.IS_DEEPIN_ENVIRONMENT:
            desktop = env.desktop_environment
            return "deepin" in desktop.lower() or desktop == "DDE"
        if attribute is Attribute.IS_SPECIAL_EFFECTS_ENVIRONMENT:
            value = _parse_int(env.variables.get("DTK_DISABLED_SPECIAL_EFFECTS", ""))
            return (value or 0) != 1
        return attribute in self._attributes

    def is_x_window_platform(self) -> bool:
        return self.test_attribute(Attribute.IS_X_WINDOW_PLATFORM)

    def is_tablet_environment(self) -> bool:
        return self.test_attribute(Attribute.IS_TABLE_ENVIRONMENT)

    def is_special_effects_environment(self) -> bool:
        return self.test_attribute(Attribute.IS_SPECIAL_EFFECTS_ENVIRONMENT)

    # Palettes

    def _use_inactive(self) -> bool:
        return self.test_attribute(Attribute.USE_INACTIVE_COLOR_GROUP)

    def standard_palette(self, kind: ThemeType) -> Palette:
        """The standard palette, following the compositing and inactive-group attributes."""
        return _standard(
            kind, self.test_attribute(Attribute.COLOR_COMPOSITING), self._use_inactive()
        )

    def fetch_palette(self, theme_name: str | bytes, active_color: Color | None) -> Palette:
        """The palette for a platform theme: dark if its name ends in "dark"."""
        if isinstance(theme_name, bytes):
            theme_name = theme_name.decode("utf-8", "replace")
        kind = ThemeType.DARK if theme_name.endswith("dark") else ThemeType.LIGHT
        palette = self.standard_palette(kind)
        if active_color is not None and active_color.is_valid():
            palette.set_color(ColorGroup.NORMAL, ColorRole.HIGHLIGHT, active_color)
            generate_palette_color(palette, ColorRole.HIGHLIGHT, kind, self._use_inactive())
        return palette

    def application_palette(self) -> Palette:
        if self._app_palette is not None:
            return self._app_palette.copy()
        kind = self._palette_type
        if kind is ThemeType.UNKNOWN:
            return self.fetch_palette(self.theme_name, self.active_color)
        palette = self.standard_palette(kind)
        if self.active_color.is_valid():
            palette.set_color(ColorGroup.NORMAL, ColorRole.HIGHLIGHT, self.active_color)
            generate_palette_color(palette, ColorRole.HIGHLIGHT, kind, self._use_inactive())
        return palette

    def set_application_palette(self, palette: Palette) -> None:
        """Fix the application palette; an unset palette clears a fixed one."""
        resolved = palette.is_resolved()
        if self._app_palette is not None:
            self._app_palette = palette.copy() if resolved else None
        elif resolved:
            self._app_palette = palette.copy()
        else:
            return
        self._notify_theme_changed()

    def _notify_theme_changed(self) -> None:
        self._emit("theme_type_changed", self.theme_type())
        self._emit("application_palette_changed")

    def palette_type(self) -> ThemeType:
        return self._palette_type

    def set_palette_type(self, kind: ThemeType) -> None:
        kind = ThemeType(kind)
        if kind is self._palette_type:
            return
        self._palette_type = kind
        if self._app_palette is None:
            self._notify_theme_changed()
        self._emit("palette_type_changed", kind)

    def theme_type(self) -> ThemeType:
        if self._palette_type is not ThemeType.UNKNOWN:
            return self._palette_type
        return to_color_type(self.application_palette())

    # Size mode

    def size_mode(self) -> SizeMode:
        """Explicit mode, else the D_DTK_SIZEMODE variable, else the system mode."""
        if self._explicit_size_mode is not None:
            return self._explicit_size_mode
        value = _parse_int(self.environment.variables.get("D_DTK_SIZEMODE", ""))
        if value is not None:
            try:
                return SizeMode(value)
            except ValueError:
                pass
        return self._system_size_mode

    def _change_size_mode(self, change: Callable[[], None]) -> None:
        old = self.size_mode()
        change()
        current = self.size_mode()
        if current is not old:
            self._emit("size_mode_changed", current)

    def set_size_mode(self, mode: SizeMode) -> None:
        mode = SizeMode(mode)
        self._change_size_mode(lambda: setattr(self, "_explicit_size_mode", mode))

    def reset_size_mode(self) -> None:
        self._change_size_mode(lambda: setattr(self, "_explicit_size_mode", None))

    def system_size_mode_changed(self, mode: SizeMode) -> None:
        """Record a new system-wide size mode."""
        mode = SizeMode(mode)
        logger.info(
            "system size mode set to %s, previously %s", mode.name, self._system_size_mode.name
        )
        self._change_size_mode(lambda: setattr(self, "_system_size_mode", mode))

    def is_compact_mode(self) -> bool:
        return self.size_mode() is SizeMode.COMPACT