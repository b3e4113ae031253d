"""HairColorService tests with a stub segmentation model."""

from __future__ import annotations

import asyncio

import numpy as np
import pytest

from conftest import BROWN, SKIN, StubProvider, encode_png, make_portrait, no_hair
from hairtint.config import RecolorConfig, SegmentationConfig
from hairtint.errors import DecodeError, HairRegionNotDetected
from hairtint.hair_color.service import HairColorService
from hairtint.models.provider import MaskChannel


def test_extract_mask_and_recolor(seg_config, stub_provider, portrait_png):
    service = HairColorService(segmentation=seg_config, provider=stub_provider)
    hair = asyncio.run(service.extract_mask(portrait_png))

    assert (hair.width, hair.height) == (64, 48)
    assert hair.mask.data[:24].min() == 1.0
    assert hair.mask.data[24:].max() == 0.0

    result = service.recolor(hair.pixels, hair.mask, "#FF0000", 100)
    assert np.all(result.rgb[:24] == (120, 0, 0))
    assert np.all(result.rgb[24:] == SKIN)
    assert np.all(hair.pixels.rgb[:24] == BROWN)


def test_progress_messages(seg_config, stub_provider, portrait_png):
    service = HairColorService(segmentation=seg_config, provider=stub_provider)
    messages = []

    asyncio.run(service.extract_mask(portrait_png, on_progress=messages.append))
    assert messages == [
        "Downloading hair model (first run only)...",
        "Analyzing hair region...",
        "Done!",
    ]

    # Model already loaded: no download message the second time
    messages.clear()
    asyncio.run(service.extract_mask(portrait_png, on_progress=messages.append))
    assert messages == ["Analyzing hair region...", "Done!"]
    assert stub_provider.load_calls == 1


def test_blank_photo_has_no_hair(seg_config, blank_png):
    service = HairColorService(segmentation=seg_config, provider=StubProvider(channels_fn=no_hair))
    with pytest.raises(HairRegionNotDetected) as exc:
        asyncio.run(service.extract_mask(blank_png))
    assert "No hair" in exc.value.user_message


def test_labelled_output_without_hair_label(seg_config, blank_png):
    def skin_only(pixels):
        n = pixels.width * pixels.height
        return [
            MaskChannel(np.full(n, 0.2, dtype=np.float32), pixels.width, pixels.height, "background"),
            MaskChannel(np.full(n, 0.8, dtype=np.float32), pixels.width, pixels.height, "skin"),
        ]

    service = HairColorService(segmentation=seg_config, provider=StubProvider(channels_fn=skin_only))
    with pytest.raises(HairRegionNotDetected):
        asyncio.run(service.extract_mask(blank_png))


def test_low_resolution_mask_is_resampled(seg_config, portrait_png):
    def coarse(pixels):
        hair = np.zeros((6, 8), dtype=np.float32)
        hair[:3] = 1.0
        return [MaskChannel(hair, 8, 6, "hair")]

    service = HairColorService(segmentation=seg_config, provider=StubProvider(channels_fn=coarse))
    hair = asyncio.run(service.extract_mask(portrait_png))
    assert hair.mask.data.shape == (48, 64)
    assert hair.mask.data[0, 0] == pytest.approx(1.0)
    assert hair.mask.data[-1, 0] == pytest.approx(0.0)


def test_binary_mode_from_config(tmp_path, portrait_png):
    config = SegmentationConfig(model_cache_dir=tmp_path, max_side=None, mask_mode="binary")

    def half(pixels):
        n = pixels.width * pixels.height
        return [MaskChannel(np.full(n, 0.6, dtype=np.float32), pixels.width, pixels.height, "hair")]

    service = HairColorService(segmentation=config, provider=StubProvider(channels_fn=half))
    hair = asyncio.run(service.extract_mask(portrait_png))
    assert set(np.unique(hair.mask.data).tolist()) == {1.0}


def test_max_side_caps_working_size(tmp_path):
    config = SegmentationConfig(model_cache_dir=tmp_path, max_side=64)
    service = HairColorService(segmentation=config, provider=StubProvider())
    photo = encode_png(make_portrait(256, 128))

    hair = asyncio.run(service.extract_mask(photo))
    assert (hair.pixels.width, hair.pixels.height) == (64, 32)
    assert hair.mask.data.shape == (32, 64)


def test_decode_error_surfaces(seg_config, stub_provider):
    service = HairColorService(segmentation=seg_config, provider=stub_provider)
    with pytest.raises(DecodeError):
        asyncio.run(service.extract_mask(b"garbage"))
    assert stub_provider.load_calls == 0


def test_lightness_bias_comes_from_config(seg_config, stub_provider, portrait_png):
    plain = HairColorService(segmentation=seg_config, provider=stub_provider)
    biased = HairColorService(
        segmentation=seg_config,
        provider=stub_provider,
        recolor_config=RecolorConfig(lightness_bias=0.2),
    )
    hair = asyncio.run(plain.extract_mask(portrait_png))
    a = plain.recolor(hair.pixels, hair.mask, "#e8dcc8", 100)
    b = biased.recolor(hair.pixels, hair.mask, "#e8dcc8", 100)
    assert b.rgb[0, 0].sum() > a.rgb[0, 0].sum()


def test_to_displayable_and_close(seg_config, stub_provider, portrait_png):
    service = HairColorService(segmentation=seg_config, provider=stub_provider)
    hair = asyncio.run(service.extract_mask(portrait_png))
    uri = service.to_displayable(hair.pixels)
    assert uri.startswith("data:image/png;base64,")

    service.close()
    assert stub_provider.released
