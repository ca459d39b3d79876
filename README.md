# dguikit

Helpers for desktop applications that need consistent light and dark
themes, palette generation, colour arithmetic, file drag-and-drop progress
reporting, single-instance start-up and translation file lookup.

## Installation

```
pip install dguikit
```

To run the tests:

```
pip install "dguikit[test]"
pytest
```

## Modules

- `dguikit.color` – `Color`, an immutable colour held in RGB or HSL form
  (`ColorSpec`). Build one with `Color.from_rgb`, `Color.from_hsl`,
  `Color.from_rgba_int` (a `0xAARRGGBB` integer), `Color.from_name`
  (`"#rgb"`, `"#rrggbb"`, `"#aarrggbb"` or a few names such as `"white"`)
  or `Color.invalid()`. Convert with `to_rgb`, `get_rgb`, `get_hsl`, `rgba`
  and `name`; change the alpha with `with_alpha_f`.
- `dguikit.palette` – `Palette`, which holds colours per `ColorGroup`
  (active, disabled, inactive) for the standard `ColorRole` entries and the
  extra `ColorType` entries. `ColorGroup.ALL` sets a colour in every group,
  `ColorGroup.CURRENT` reads the group chosen with `set_current_group`.
  Unset colours read back as invalid. `to_bytes` and `from_bytes` serialise a
  palette; `is_resolved` tells whether any standard role was set.
- `dguikit.helper` – the theming core:
  - `adjust_color` shifts hue, saturation, lightness, red, green, blue and
    alpha by percentages from -100 to 100; `adjust_image` does the same for
    every non-transparent `0xAARRGGBB` pixel of an image given as rows;
    `blend_color` lays one colour over another.
  - `to_color_type` classifies a colour, or a palette's window colour, as
    `ThemeType.LIGHT` or `ThemeType.DARK` (`UNKNOWN` for an invalid colour).
  - `standard_palette` returns the built-in light or dark palette, optionally
    in its semi-transparent "compositing" variant; `generate_palette_color`
    and `generate_palette` fill the disabled and inactive groups from the
    normal colours.
  - `ApplicationHelper` tracks `Attribute` flags (those from
    `Attribute.READ_ONLY_LIMIT` up are read-only and are computed from an
    `Environment`, by default taken from the process environment), the
    palette type, a fixed application palette, and the `SizeMode`, which is
    the explicitly set mode, else the `D_DTK_SIZEMODE` variable, else the
    system mode. `connect` registers callbacks for the signals
    `"theme_type_changed"`, `"palette_type_changed"`,
    `"application_palette_changed"` and `"size_mode_changed"`.
- `dguikit.filedrag` – `FileDragServer`, `FileDragClient` and `FileDrag`.
  The sender writes what a receiver needs into `MimeData` and reports
  progress and `FileDragState`; the receiver follows them through the
  `"progress_changed"`, `"state_changed"` and `"server_destroyed"` signals
  and tells the sender the target URL with `FileDragClient.set_target_url`.
  Both sides meet on a `DragBus`, where services are registered with their
  pid.
- `dguikit.areas` – `Rect` with inclusive right and bottom edges, plus
  `encode_areas` and `decode_areas` for area lists given as corner
  coordinates `(x1, y1, x2, y2)`.
- `dguikit.instance` – `SingleInstance`: the first process to `acquire` a
  key (per `SingleScope`: user, group or world) becomes the primary and
  listens on a Unix socket guarded by a lock file; later processes exchange
  their pid and arguments with it, and the primary passes them to callbacks
  registered with `connect`. `socket_key` gives the socket name for a key.
- `dguikit.translations` – `translation_candidates` and `find_translation`,
  which look for `.qm` files by locale, falling back from `name_zh_CN` to
  `name_zh`, in the given directories and then in `translations` under the
  application and working directories.

## Example

```python
from dguikit.color import Color
from dguikit.helper import ApplicationHelper, ThemeType, adjust_color, to_color_type

red = Color.from_name("#ff0000")
faded = adjust_color(red, 0, 0, 0, 0, 0, 0, -20)
print(faded.name(), faded.get_rgb())              # #ff0000 (255, 0, 0, 204)

print(to_color_type(Color.from_name("white")))   # ThemeType.LIGHT

helper = ApplicationHelper()
helper.connect("palette_type_changed", lambda kind: print("palette type:", kind))
helper.set_palette_type(ThemeType.DARK)
palette = helper.application_palette()
print(palette.window().name())                   # #252525
```

## What it does not do

- It draws nothing and has no windows, widgets or event loop; palettes and
  colours are plain values for an application's own toolkit to use.
- `DragBus` is an in-process bus. Carrying drag messages between processes
  is left to the application.
- `find_translation` only locates a translation file; it does not load or
  install translations.
- `SingleInstance` uses Unix domain sockets and so needs a POSIX system.