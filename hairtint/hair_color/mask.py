"""
Turns segmentation channels into a single hair confidence mask.
"""

from __future__ import annotations

import logging
from typing import Literal, Optional, Sequence

import numpy as np

from hairtint.errors import HairRegionNotDetected
from hairtint.io.buffers import ConfidenceMask
from hairtint.io.image import resize_mask
from hairtint.models.provider import MaskChannel

logger = logging.getLogger(__name__)


def resolve_hair_channel(
    channels: Sequence[MaskChannel],
    hair_label: str = "hair",
    channel_index: Optional[int] = None,
) -> MaskChannel:
    """
    Pick the hair channel from a provider's output.

    Lookup order: explicit index, then a channel labelled ``hair_label``,
    then position for unlabelled output (two channels: the second is hair,
    one channel: it is hair).
    """
    if not channels:
        raise HairRegionNotDetected("Segmentation returned no channels")

    if channel_index is not None:
        if channel_index >= len(channels):
            raise HairRegionNotDetected(
                f"Channel {channel_index} requested but only {len(channels)} returned"
            )
        return channels[channel_index]

    wanted = hair_label.lower()
    for channel in channels:
        if channel.label is not None and channel.label.lower() == wanted:
            return channel

    if all(c.label is None for c in channels):
        if len(channels) == 2:
            return channels[1]
        if len(channels) == 1:
            return channels[0]

    labels = [c.label for c in channels]
    raise HairRegionNotDetected(f"No '{hair_label}' channel in segmentation output: {labels}")


def interpret_mask(
    channels: Sequence[MaskChannel],
    width: Optional[int] = None,
    height: Optional[int] = None,
    *,
    hair_label: str = "hair",
    channel_index: Optional[int] = None,
    mode: Literal["soft", "binary"] = "soft",
    threshold: float = 0.5,
    min_coverage: float = 0.001,
) -> ConfidenceMask:
    """
    Build the hair mask the recolor engine consumes.

    Args:
        channels: Provider output
        width, height: Resample the mask to this size (bilinear)
        mode: 'soft' keeps the confidences (antialiased hairline),
              'binary' thresholds to {0, 1}
        threshold: Confidences strictly above this count as hair
        min_coverage: Minimum fraction of hair pixels, below it the
                      photo is treated as having no hair

    Returns:
        ConfidenceMask in [0, 1]
    """
    channel = resolve_hair_channel(channels, hair_label, channel_index)
    mask = ConfidenceMask.from_array(np.asarray(channel.data), channel.width, channel.height)

    coverage = mask.coverage(threshold)
    logger.debug(f"Hair coverage {coverage:.4f} at threshold {threshold}")
    if coverage == 0.0 or coverage < min_coverage:
        raise HairRegionNotDetected(f"Hair covers {coverage:.4%} of the image")

    if width is not None and height is not None:
        mask = resize_mask(mask, width, height)

    if mode == "binary":
        mask = ConfidenceMask.from_array((mask.data > threshold).astype(np.float32))

    return mask
