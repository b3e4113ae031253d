"""Palette lookups and swatch shading."""

from __future__ import annotations

import re

import pytest

from hairtint.errors import InvalidColorFormat
from hairtint.utils.color_space import hex_to_hsl
from hairtint.utils.palette import (
    HAIR_COLORS,
    SALON_COLORS,
    adjust_color_intensity,
    get_color,
    palette_rows,
    resolve_color,
)

HEX = re.compile(r"^#[0-9a-f]{6}$")


def test_palette_ids_are_unique_and_hex_is_valid():
    rows = palette_rows()
    assert len(rows) == len(HAIR_COLORS) + len(SALON_COLORS)
    assert len({color_id for color_id, _, _ in rows}) == len(rows)
    assert all(HEX.match(hex_color) for _, _, hex_color in rows)


def test_get_and_resolve():
    assert get_color("Burgundy").hex == "#6b1c23"
    assert resolve_color("caramel") == "#c4874d"
    assert resolve_color("#AABBCC") == "#aabbcc"
    assert resolve_color("aabbcc") == "#aabbcc"


def test_unknown_color_raises():
    with pytest.raises(InvalidColorFormat):
        get_color("teal-ish")
    with pytest.raises(InvalidColorFormat):
        resolve_color("teal-ish")


def test_intensity_scales_saturation():
    base = "#8b2942"
    _, s_base, _ = hex_to_hsl(base)
    _, s_low, _ = hex_to_hsl(adjust_color_intensity(base, 0))
    _, s_high, _ = hex_to_hsl(adjust_color_intensity(base, 100))
    assert s_low < s_high
    assert s_high == pytest.approx(s_base, abs=2.0)
    assert s_low == pytest.approx(s_base * 0.3, abs=2.0)


def test_intensity_shifts_lightness():
    base = "#7b4a2a"
    _, _, l_base = hex_to_hsl(base)
    _, _, l_low = hex_to_hsl(adjust_color_intensity(base, 0))
    _, _, l_mid = hex_to_hsl(adjust_color_intensity(base, 50))
    _, _, l_high = hex_to_hsl(adjust_color_intensity(base, 100))
    assert l_low > l_mid > l_high
    assert l_mid == pytest.approx(l_base, abs=1.0)


def test_intensity_is_clamped():
    assert adjust_color_intensity("#5c3317", 140) == adjust_color_intensity("#5c3317", 100)
    assert adjust_color_intensity("#5c3317", -5) == adjust_color_intensity("#5c3317", 0)


def test_gray_swatch_stays_gray():
    out = adjust_color_intensity("#8a8a8a", 30)
    assert out[1:3] == out[3:5] == out[5:7]
