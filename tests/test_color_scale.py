import pytest

from insurdash.performance.color_scale import get_dynamic_color_by_vcr


def test_missing_vcr_is_grey():
    color = get_dynamic_color_by_vcr(None)
    assert (color.hue, color.saturation, color.lightness) == (0, 0, 70)


@pytest.mark.parametrize('vcr, lightness', [
    (87.9, pytest.approx(45.0, abs=0.1)),
    (74.0, pytest.approx(37.5)),
    (60.0, pytest.approx(30.0)),
    (10.0, pytest.approx(30.0)),
])
def test_profitable_band_is_green(vcr, lightness):
    color = get_dynamic_color_by_vcr(vcr)
    assert color.hue == 120
    assert color.lightness == lightness


@pytest.mark.parametrize('vcr', [88.0, 90.0, 91.99])
def test_watch_band_is_blue(vcr):
    color = get_dynamic_color_by_vcr(vcr)
    assert (color.hue, color.saturation, color.lightness) == (210, 70, 50)


@pytest.mark.parametrize('vcr, lightness', [
    (92.0, 55.0),
    (106.0, 45.0),
    (150.0, 35.0),
])
def test_loss_band_is_red(vcr, lightness):
    color = get_dynamic_color_by_vcr(vcr)
    assert color.hue == 0
    assert color.lightness == pytest.approx(lightness)


def test_css():
    assert get_dynamic_color_by_vcr(60.0).css == 'hsl(120, 60%, 30%)'
