"""
Hair recoloring in HSL space.

Hue is replaced by the target hue, saturation is blended toward the target,
lightness is kept (optionally nudged toward the target) so strand shading and
highlights survive. The HSL result is then alpha-blended with the original in
RGB, weighted by intensity times mask confidence.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Union

import numpy as np

from hairtint.errors import DimensionMismatch
from hairtint.io.buffers import ConfidenceMask, PixelBuffer
from hairtint.utils.color_space import hex_to_hsl, hex_to_rgb, hsl_to_rgb_array, rgb_to_hex, rgb_to_sl_array

logger = logging.getLogger(__name__)

MAX_LIGHTNESS_BIAS = 0.2


@dataclass(frozen=True)
class ColorTarget:
    h: float
    s: float
    l: float
    hex: str

    @classmethod
    def from_hex(cls, hex_color: str) -> "ColorTarget":
        h, s, l = hex_to_hsl(hex_color)
        return cls(h=h, s=s, l=l, hex=rgb_to_hex(*hex_to_rgb(hex_color)))


def recolor(
    original_pixels: PixelBuffer,
    mask: ConfidenceMask,
    target: Union[ColorTarget, str],
    intensity: float,
    *,
    lightness_bias: float = 0.0,
) -> PixelBuffer:
    """
    Shift hair pixels toward a target color.

    Args:
        original_pixels: Source photo, never modified
        mask: Hair confidence, same size as the photo
        target: ColorTarget or '#RRGGBB'
        intensity: 0 (unchanged) to 100 (full strength), clamped
        lightness_bias: Fraction (0-0.2) of the way toward the target lightness

    Returns:
        New PixelBuffer; pixels with zero mask weight are byte-identical
    """
    if (mask.width, mask.height) != (original_pixels.width, original_pixels.height):
        logger.error(
            f"Mask {mask.width}x{mask.height} does not match pixels "
            f"{original_pixels.width}x{original_pixels.height}"
        )
        raise DimensionMismatch(
            f"Mask is {mask.width}x{mask.height}, pixels are "
            f"{original_pixels.width}x{original_pixels.height}"
        )

    if not isinstance(target, ColorTarget):
        target = ColorTarget.from_hex(target)

    intensity = min(max(float(intensity), 0.0), 100.0)
    lightness_bias = min(max(float(lightness_bias), 0.0), MAX_LIGHTNESS_BIAS)

    out = original_pixels.data.copy()
    blend = mask.data * np.float32(intensity / 100.0)
    selected = blend > 0
    if not np.any(selected):
        return PixelBuffer(out)

    eb = blend[selected]
    rgb = original_pixels.data[..., :3][selected].astype(np.float32)

    # The hue is replaced wholesale, so only saturation and lightness are read
    orig_s, orig_l = rgb_to_sl_array(rgb)
    new_s = np.minimum(100.0, target.s * eb + orig_s * (1.0 - eb))
    new_l = orig_l + lightness_bias * eb * (target.l - orig_l)

    colored = hsl_to_rgb_array(target.h, new_s, new_l, dtype=np.float32)

    # Second blend in RGB feathers soft mask edges and low intensities
    weight = eb[:, None]
    final = colored * weight + rgb * (1.0 - weight)
    out[selected, :3] = np.clip(np.floor(final + 0.5), 0, 255).astype(np.uint8)

    return PixelBuffer(out)
