"""Shared fixtures: synthetic photos and stub segmentation providers."""

from __future__ import annotations

import asyncio
import time
from typing import Callable, List, Optional

import cv2
import numpy as np
import pytest

from hairtint.config import SegmentationConfig
from hairtint.io.buffers import PixelBuffer
from hairtint.models.provider import MaskChannel, SegmentationProvider

BROWN = (80, 60, 40)
SKIN = (224, 172, 140)


def top_half_hair(pixels: PixelBuffer) -> List[MaskChannel]:
    """Unlabelled [background, hair] output with hair in the top half."""
    h, w = pixels.height, pixels.width
    hair = np.zeros((h, w), dtype=np.float32)
    hair[: h // 2] = 1.0
    return [
        MaskChannel(data=(1.0 - hair).ravel(), width=w, height=h),
        MaskChannel(data=hair.ravel(), width=w, height=h),
    ]


def no_hair(pixels: PixelBuffer) -> List[MaskChannel]:
    h, w = pixels.height, pixels.width
    return [
        MaskChannel(data=np.ones(h * w, dtype=np.float32), width=w, height=h),
        MaskChannel(data=np.zeros(h * w, dtype=np.float32), width=w, height=h),
    ]


class StubProvider(SegmentationProvider):
    name = "stub"

    def __init__(
        self,
        channels_fn: Callable[[PixelBuffer], List[MaskChannel]] = top_half_hair,
        fail_loads: int = 0,
        load_delay: float = 0.0,
        segment_delay: float = 0.0,
        error: Optional[Exception] = None,
    ) -> None:
        super().__init__()
        self.channels_fn = channels_fn
        self.fail_loads = fail_loads
        self.load_delay = load_delay
        self.segment_delay = segment_delay
        self.error = error
        self.load_calls = 0
        self.predict_calls = 0
        self.released = False

    async def segment(self, pixels: PixelBuffer) -> List[MaskChannel]:
        if self.segment_delay:
            await asyncio.sleep(self.segment_delay)
        return await super().segment(pixels)

    def _load_model(self) -> None:
        self.load_calls += 1
        if self.load_delay:
            time.sleep(self.load_delay)
        if self.fail_loads > 0:
            self.fail_loads -= 1
            raise RuntimeError("weights missing")

    def _predict(self, pixels: PixelBuffer) -> List[MaskChannel]:
        self.predict_calls += 1
        if self.error is not None:
            raise self.error
        return self.channels_fn(pixels)

    def _release(self) -> None:
        self.released = True


def encode_png(rgb: np.ndarray) -> bytes:
    ok, buf = cv2.imencode(".png", cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR))
    assert ok
    return buf.tobytes()


def make_portrait(width: int = 64, height: int = 48) -> np.ndarray:
    """Brown 'hair' on top, skin tone below (RGB)."""
    rgb = np.zeros((height, width, 3), dtype=np.uint8)
    rgb[: height // 2] = BROWN
    rgb[height // 2:] = SKIN
    return rgb


@pytest.fixture
def portrait_rgb() -> np.ndarray:
    return make_portrait()


@pytest.fixture
def portrait_png(portrait_rgb) -> bytes:
    return encode_png(portrait_rgb)


@pytest.fixture
def blank_png() -> bytes:
    return encode_png(np.full((48, 64, 3), 255, dtype=np.uint8))


@pytest.fixture
def stub_provider() -> StubProvider:
    return StubProvider()


@pytest.fixture
def seg_config(tmp_path) -> SegmentationConfig:
    return SegmentationConfig(model_cache_dir=tmp_path / "models", max_side=None)
