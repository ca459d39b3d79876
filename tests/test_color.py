import pytest

from dguikit.color import Color, ColorSpec


def test_from_name_hex_components():
    color = Color.from_name("#0081ff")
    assert color.get_rgb() == (0x00, 0x81, 0xFF, 255)
    assert color.spec is ColorSpec.RGB


def test_from_name_with_alpha():
    color = Color.from_name("#80112233")
    assert color.get_rgb() == (0x11, 0x22, 0x33, 0x80)


def test_named_colors():
    assert Color.from_name("white").get_rgb() == (255, 255, 255, 255)
    assert Color.from_name("black").get_rgb() == (0, 0, 0, 255)


def test_name_is_lower_case_hex():
    assert Color.from_name("#0081FF").name() == "#0081ff"


def test_rgba_int_round_trip():
    color = Color.from_rgb(0x12, 0x34, 0x56, 0x78)
    assert color.rgba() == 0x78123456
    assert Color.from_rgba_int(color.rgba()) == color


def test_invalid_color():
    color = Color.invalid()
    assert not color.is_valid()
    assert color.to_rgb() == color
    assert color.with_alpha_f(0.5) == color
    with pytest.raises(ValueError):
        color.get_rgb()


def test_component_range_errors():
    with pytest.raises(ValueError):
        Color.from_rgb(256, 0, 0)
    with pytest.raises(ValueError):
        Color.from_rgb(0, 0, 0, -1)
    with pytest.raises(ValueError):
        Color.from_hsl(360, 0, 0)
    with pytest.raises(ValueError):
        Color.from_rgba_int(1 << 32)


def test_bad_name():
    with pytest.raises(ValueError):
        Color.from_name("nope")
    with pytest.raises(ValueError):
        Color.from_name("#12345")


def test_grey_is_achromatic():
    hue, saturation, _, alpha = Color.from_rgb(100, 100, 100, 10).get_hsl()
    assert hue == -1
    assert saturation == 0
    assert alpha == 10


@pytest.mark.parametrize(
    "rgb", [(255, 0, 0), (0, 129, 255), (173, 69, 121), (248, 248, 248), (12, 200, 40)]
)
def test_hsl_round_trip(rgb):
    color = Color.from_rgb(*rgb)
    back = Color.from_hsl(*color.get_hsl()).to_rgb()
    assert back.spec is ColorSpec.RGB
    for original, converted in zip(rgb, back.get_rgb()[:3]):
        assert abs(original - converted) <= 2


def test_hsl_color_keeps_hsl_components():
    color = Color.from_hsl(100, 100, 100, 100)
    assert color.get_hsl() == (100, 100, 100, 100)
    assert color.to_rgb().alpha == 100


def test_with_alpha_f_keeps_rgb():
    color = Color.from_rgb(10, 20, 30)
    assert color.with_alpha_f(0.0).get_rgb() == (10, 20, 30, 0)
    assert color.with_alpha_f(1.0).get_rgb() == (10, 20, 30, 255)
    with pytest.raises(ValueError):
        color.with_alpha_f(1.5)


def test_with_alpha_f_keeps_spec():
    color = Color.from_hsl(200, 50, 60)
    assert color.with_alpha_f(0.0).spec is ColorSpec.HSL


def test_channel_fractions():
    color = Color.from_rgb(255, 0, 255, 0)
    assert color.red_f == 1.0
    assert color.green_f == 0.0
    assert color.blue_f == 1.0
    assert color.alpha_f == 0.0