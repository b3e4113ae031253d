"""
Salon hair color presets and swatch shading.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

from hairtint.errors import InvalidColorFormat
from hairtint.utils.color_space import _round, hex_to_hsl, hex_to_rgb, hsl_to_hex, rgb_to_hex


@dataclass(frozen=True)
class HairColor:
    id: str
    label: str
    hex: str


# Palette swatches
HAIR_COLORS: List[HairColor] = [
    HairColor("natural-black", "Natural Black", "#1a1a1a"),
    HairColor("dark-brown", "Dark Brown", "#3d2314"),
    HairColor("choco-brown", "Chocolate Brown", "#5c3317"),
    HairColor("warm-brown", "Warm Brown", "#7b4a2a"),
    HairColor("ash-brown", "Ash Brown", "#6b5b4f"),
    HairColor("milk-brown", "Milk Brown", "#a67b5b"),
    HairColor("caramel", "Caramel", "#c4874d"),
    HairColor("honey-blonde", "Honey Blonde", "#d4a96a"),
    HairColor("platinum", "Platinum", "#e8dcc8"),
    HairColor("burgundy", "Burgundy", "#6b1c23"),
    HairColor("cherry-red", "Cherry Red", "#8b2942"),
    HairColor("rose-pink", "Rose Pink", "#c4727f"),
    HairColor("ash-grey", "Ash Grey", "#8a8a8a"),
    HairColor("blue-black", "Blue Black", "#1a2744"),
    HairColor("olive", "Olive", "#5c6b3b"),
    HairColor("lavender", "Lavender", "#9b89b3"),
]

# Colors offered for the full-photo restyle
SALON_COLORS: List[HairColor] = [
    HairColor("salon-natural-black", "Natural Black", "#1b1b1b"),
    HairColor("salon-dark-brown", "Dark Brown", "#3b2314"),
    HairColor("salon-choco-brown", "Chocolate Brown", "#5c3a1e"),
    HairColor("salon-ash-brown", "Ash Brown", "#7b6b5d"),
    HairColor("salon-burgundy", "Burgundy", "#722f37"),
    HairColor("wine-red", "Wine Red", "#8b2252"),
    HairColor("rose-gold", "Rose Gold", "#b76e79"),
    HairColor("salon-honey-blonde", "Honey Blonde", "#c4956a"),
    HairColor("salon-ash-grey", "Ash Grey", "#8e8e8e"),
    HairColor("salon-platinum", "Platinum", "#d4cdc6"),
    HairColor("olive-brown", "Olive Brown", "#6b6340"),
]

_BY_ID: Dict[str, HairColor] = {c.id: c for c in HAIR_COLORS + SALON_COLORS}


def get_color(color_id: str) -> HairColor:
    try:
        return _BY_ID[color_id.lower()]
    except KeyError:
        raise InvalidColorFormat(f"Unknown palette color: {color_id!r}") from None


def resolve_color(value: str) -> str:
    """
    Accepts a hex color or a palette id and returns a normalised '#rrggbb'.
    """
    if value.lower() in _BY_ID:
        return _BY_ID[value.lower()].hex
    return rgb_to_hex(*hex_to_rgb(value))


def adjust_color_intensity(base_hex: str, intensity: float) -> str:
    """
    Shade a swatch for the intensity slider.

    Saturation scales from 30% of the swatch (intensity 0) up to the full
    swatch (100). Lightness is untouched at 50, lifted toward white below
    it and deepened above it.

    Args:
        base_hex: Swatch color
        intensity: Slider value 0-100

    Returns:
        Adjusted hex color
    """
    intensity = max(0.0, min(100.0, float(intensity)))
    h, s, l = (_round(v) for v in hex_to_hsl(base_hex))

    sat = s * (0.3 + (intensity / 100) * 0.7)
    if intensity <= 50:
        light = l + (100 - l) * ((50 - intensity) / 50) * 0.4
    else:
        light = l - l * ((intensity - 50) / 50) * 0.3

    return hsl_to_hex(h, _round(sat), _round(light))


def palette_rows() -> List[Tuple[str, str, str]]:
    return [(c.id, c.label, c.hex) for c in HAIR_COLORS + SALON_COLORS]
