"""
RGB / HSL / hex conversions.
Scalar helpers for single colors plus numpy versions used for whole images.
HSL uses h in [0, 360), s and l in [0, 100].
"""

from __future__ import annotations

import math
import re
from typing import Tuple

import numpy as np

from hairtint.errors import InvalidColorFormat

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")


def _round(x: float) -> int:
    # Half-up, not Python's banker's rounding
    return int(math.floor(x + 0.5))


def hex_to_rgb(hex_color: str) -> Tuple[int, int, int]:
    """Parse '#RRGGBB' (the '#' is optional)."""
    if not isinstance(hex_color, str):
        raise InvalidColorFormat(f"Expected a hex color string, got {type(hex_color).__name__}")
    match = _HEX_RE.match(hex_color.strip())
    if match is None:
        raise InvalidColorFormat(f"Invalid hex color: {hex_color!r}")
    digits = match.group(1)
    return int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16)


def rgb_to_hex(r: int, g: int, b: int) -> str:
    return "#" + "".join(f"{max(0, min(255, int(c))):02x}" for c in (r, g, b))


def rgb_to_hsl(r: float, g: float, b: float) -> Tuple[float, float, float]:
    r, g, b = r / 255.0, g / 255.0, b / 255.0
    mx = max(r, g, b)
    mn = min(r, g, b)
    l = (mx + mn) / 2.0
    h = 0.0
    s = 0.0

    if mx != mn:
        d = mx - mn
        s = d / (2.0 - mx - mn) if l > 0.5 else d / (mx + mn)
        if mx == r:
            h = ((g - b) / d + (6.0 if g < b else 0.0)) / 6.0
        elif mx == g:
            h = ((b - r) / d + 2.0) / 6.0
        else:
            h = ((r - g) / d + 4.0) / 6.0

    return (h * 360.0) % 360.0, s * 100.0, l * 100.0


def _hue_to_rgb(p: float, q: float, t: float) -> float:
    if t < 0:
        t += 1
    if t > 1:
        t -= 1
    if t < 1 / 6:
        return p + (q - p) * 6 * t
    if t < 1 / 2:
        return q
    if t < 2 / 3:
        return p + (q - p) * (2 / 3 - t) * 6
    return p


def hsl_to_rgb(h: float, s: float, l: float) -> Tuple[int, int, int]:
    h = (h % 360.0) / 360.0
    s = min(max(s, 0.0), 100.0) / 100.0
    l = min(max(l, 0.0), 100.0) / 100.0

    if s == 0:
        val = _round(l * 255)
        return val, val, val

    q = l * (1 + s) if l < 0.5 else l + s - l * s
    p = 2 * l - q
    return (
        _round(_hue_to_rgb(p, q, h + 1 / 3) * 255),
        _round(_hue_to_rgb(p, q, h) * 255),
        _round(_hue_to_rgb(p, q, h - 1 / 3) * 255),
    )


def hex_to_hsl(hex_color: str) -> Tuple[float, float, float]:
    return rgb_to_hsl(*hex_to_rgb(hex_color))


def hsl_to_hex(h: float, s: float, l: float) -> str:
    return rgb_to_hex(*hsl_to_rgb(h, s, l))


def _chroma_parts(rgb: np.ndarray, dtype) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    rgb = np.asarray(rgb, dtype=dtype) / 255.0
    mx = rgb.max(axis=-1)
    mn = rgb.min(axis=-1)
    l = (mx + mn) / 2.0
    d = mx - mn
    denom = np.where(l > 0.5, 2.0 - mx - mn, mx + mn)
    s = np.divide(d, denom, out=np.zeros_like(d), where=d > 0)
    return rgb, mx, d, s, l


def rgb_to_sl_array(rgb: np.ndarray, dtype=np.float32) -> Tuple[np.ndarray, np.ndarray]:
    """Saturation and lightness only (0-100), for callers that replace the hue."""
    _, _, _, s, l = _chroma_parts(rgb, dtype)
    return s * 100.0, l * 100.0


def rgb_to_hsl_array(rgb: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Vectorised rgb_to_hsl.

    Args:
        rgb: (..., 3) array of 0-255 values

    Returns:
        h, s, l arrays with the leading shape of rgb
    """
    rgb, mx, d, s, l = _chroma_parts(rgb, np.float64)
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]

    chroma = d > 0
    safe_d = np.where(chroma, d, 1.0)

    # Same precedence as the scalar version: red, then green, then blue
    h_r = (g - b) / safe_d + np.where(g < b, 6.0, 0.0)
    h_g = (b - r) / safe_d + 2.0
    h_b = (r - g) / safe_d + 4.0
    h = np.where(mx == r, h_r, np.where(mx == g, h_g, h_b))
    h = np.where(chroma, h / 6.0, 0.0) * 360.0

    return np.mod(h, 360.0), s * 100.0, l * 100.0


def _hue_to_rgb_array(p: np.ndarray, q: np.ndarray, t: np.ndarray) -> np.ndarray:
    t = np.where(t < 0, t + 1, t)
    t = np.where(t > 1, t - 1, t)
    return np.where(
        t < 1 / 6,
        p + (q - p) * 6 * t,
        np.where(t < 1 / 2, q, np.where(t < 2 / 3, p + (q - p) * (2 / 3 - t) * 6, p)),
    )


def hue_weights(h: float) -> Tuple[float, float, float]:
    """
    Per-channel hue2rgb weights for a fixed hue.

    hue2rgb is affine in (p, q), so for one hue each channel is
    p + (q - p) * weight.
    """
    h = (h % 360.0) / 360.0
    return (
        _hue_to_rgb(0.0, 1.0, h + 1 / 3),
        _hue_to_rgb(0.0, 1.0, h),
        _hue_to_rgb(0.0, 1.0, h - 1 / 3),
    )


def hsl_to_rgb_array(h, s, l, dtype=np.float64) -> np.ndarray:
    """
    Vectorised hsl_to_rgb. Inputs broadcast against each other.
    A scalar hue takes the fixed-hue path (no per-pixel branching).

    Returns:
        (..., 3) array of rounded 0-255 values
    """
    s = np.clip(np.asarray(s, dtype=dtype), 0.0, 100.0) / 100.0
    l = np.clip(np.asarray(l, dtype=dtype), 0.0, 100.0) / 100.0

    if np.ndim(h) == 0:
        s, l = np.broadcast_arrays(s, l)
        q = np.where(l < 0.5, l * (1 + s), l + s - l * s)
        p = 2 * l - q
        weights = np.asarray(hue_weights(float(h)), dtype=dtype)
        # s == 0 gives q == p == l, so gray needs no special case
        rgb = p[..., None] + (q - p)[..., None] * weights
        return np.floor(rgb * 255.0 + 0.5)

    h, s, l = np.broadcast_arrays(np.asarray(h, dtype=dtype), s, l)
    h = np.mod(h, 360.0) / 360.0

    q = np.where(l < 0.5, l * (1 + s), l + s - l * s)
    p = 2 * l - q
    rgb = np.stack(
        [
            _hue_to_rgb_array(p, q, h + 1 / 3),
            _hue_to_rgb_array(p, q, h),
            _hue_to_rgb_array(p, q, h - 1 / 3),
        ],
        axis=-1,
    )
    gray = (s == 0)[..., None]
    rgb = np.where(gray, l[..., None], rgb)
    return np.floor(rgb * 255.0 + 0.5)
