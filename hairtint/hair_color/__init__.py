"""
Hair segmentation and live recoloring.
"""

from hairtint.hair_color.mask import interpret_mask, resolve_hair_channel
from hairtint.hair_color.recolor import ColorTarget, recolor
from hairtint.hair_color.service import HairColorService, HairMask

__all__ = [
    "interpret_mask",
    "resolve_hair_channel",
    "ColorTarget",
    "recolor",
    "HairColorService",
    "HairMask",
]
