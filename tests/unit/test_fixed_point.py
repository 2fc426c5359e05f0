import pytest

from portfolio_backtesting.fixed_point import (
    WAD,
    babylonian_sqrt,
    bps_to_wad,
    div_trunc,
    from_wad,
    mul_div,
    to_wad,
    wad_sqrt,
)


@pytest.mark.parametrize(
    ("x", "expected"),
    [(0, 0), (1, 1), (2, 1), (3, 1), (4, 2), (15, 3), (16, 4), (10**36, 10**18)],
)
def test_babylonian_sqrt_returns_floor_root(x, expected):
    assert babylonian_sqrt(x) == expected


def test_babylonian_sqrt_rejects_negative():
    with pytest.raises(ValueError, match="negative"):
        babylonian_sqrt(-1)


def test_wad_sqrt_keeps_wad_scale():
    assert wad_sqrt(4 * WAD) == 2 * WAD
    assert wad_sqrt(WAD // 4) == WAD // 2


def test_div_trunc_rounds_toward_zero():
    assert div_trunc(7, 2) == 3
    assert div_trunc(-7, 2) == -3
    assert div_trunc(7, -2) == -3
    assert div_trunc(-7, -2) == 3
    with pytest.raises(ZeroDivisionError):
        div_trunc(1, 0)


def test_mul_div_and_bps_conversion():
    assert mul_div(10_000, 6_000, 10_000) == 6_000
    assert bps_to_wad(250) == WAD // 40


def test_to_wad_avoids_binary_float_drift():
    assert to_wad(0.1) == 10**17
    assert to_wad("1.5") == 15 * 10**17
    assert to_wad(3) == 3 * WAD
    with pytest.raises(ValueError):
        to_wad("not-a-number")
    with pytest.raises(ValueError):
        to_wad(float("nan"))


def test_from_wad_is_display_conversion():
    assert from_wad(WAD // 4) == pytest.approx(0.25)
    assert from_wad(None) is None
