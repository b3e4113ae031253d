"""
Live hair color service: mask extraction once per photo, cheap recolors after.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from hairtint.config import RecolorConfig, SegmentationConfig
from hairtint.hair_color.mask import interpret_mask
from hairtint.hair_color.recolor import recolor
from hairtint.io.buffers import ConfidenceMask, PixelBuffer
from hairtint.io.image import ImageResource, decode, fit_within, resize_pixels, to_data_uri
from hairtint.models.provider import ProviderState, SegmentationProvider, create_provider

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]

# Intensity used by the one-tap color preview
DEFAULT_INTENSITY = 85.0


@dataclass(frozen=True)
class HairMask:
    mask: ConfidenceMask
    pixels: PixelBuffer  # Decoded photo at the mask's resolution

    @property
    def width(self) -> int:
        return self.mask.width

    @property
    def height(self) -> int:
        return self.mask.height


def _notify(on_progress: Optional[ProgressCallback], message: str) -> None:
    if on_progress is not None:
        on_progress(message)


class HairColorService:
    def __init__(
        self,
        segmentation: Optional[SegmentationConfig] = None,
        provider: Optional[SegmentationProvider] = None,
        recolor_config: Optional[RecolorConfig] = None,
    ) -> None:
        self.segmentation = segmentation or SegmentationConfig()
        self.provider = provider or create_provider(self.segmentation)
        self.recolor_config = recolor_config or RecolorConfig()

    def decode(self, photo: ImageResource) -> PixelBuffer:
        """Decode a photo, capped at the configured preview size."""
        pixels = decode(photo)
        width, height = fit_within(pixels.width, pixels.height, self.segmentation.max_side)
        return resize_pixels(pixels, width, height)

    async def extract_mask(
        self,
        photo: ImageResource,
        on_progress: Optional[ProgressCallback] = None,
    ) -> HairMask:
        """
        Decode the photo and segment its hair region.

        Raises:
            DecodeError: unreadable photo
            HairRegionNotDetected: no hair found
            ModelUnavailable: model could not be loaded or run
        """
        pixels = self.decode(photo)

        if self.provider.state is not ProviderState.READY:
            _notify(on_progress, "Downloading hair model (first run only)...")
            await self.provider.load()

        _notify(on_progress, "Analyzing hair region...")
        channels = await self.provider.segment(pixels)

        cfg = self.segmentation
        mask = interpret_mask(
            channels,
            pixels.width,
            pixels.height,
            hair_label=cfg.hair_label,
            channel_index=cfg.channel_index,
            mode=cfg.mask_mode,
            threshold=cfg.threshold,
            min_coverage=cfg.min_coverage,
        )
        logger.info(f"Hair mask extracted at {mask.width}x{mask.height}")
        _notify(on_progress, "Done!")
        return HairMask(mask=mask, pixels=pixels)

    def recolor(
        self,
        original_pixels: PixelBuffer,
        mask: ConfidenceMask,
        target_hex: str,
        intensity: float = DEFAULT_INTENSITY,
    ) -> PixelBuffer:
        return recolor(
            original_pixels,
            mask,
            target_hex,
            intensity,
            lightness_bias=self.recolor_config.lightness_bias,
        )

    @staticmethod
    def to_displayable(buffer: PixelBuffer, fmt: str = 'png') -> str:
        return to_data_uri(buffer, fmt)

    def close(self) -> None:
        self.provider.close()
