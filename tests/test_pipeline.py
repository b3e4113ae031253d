"""Batch recolor pipeline tests."""

from __future__ import annotations

import numpy as np
import pytest

from conftest import SKIN, StubProvider, no_hair
from hairtint.config import RecolorJobConfig
from hairtint.errors import HairRegionNotDetected, InvalidColorFormat
from hairtint.io.image import decode
from hairtint.pipelines.recolor_pipeline import HairRecolorPipeline


@pytest.fixture
def photo_path(tmp_path, portrait_png):
    path = tmp_path / "portrait.png"
    path.write_bytes(portrait_png)
    return path


def _job(photo_path, output, seg_config, **kwargs):
    return RecolorJobConfig(
        input_path=photo_path,
        output_path=output,
        segmentation=seg_config,
        **kwargs,
    )


def test_single_color_writes_exact_path(tmp_path, photo_path, seg_config):
    out = tmp_path / "out" / "red.png"
    job = _job(photo_path, out, seg_config, colors=["#ff0000"], intensity=100)

    written = HairRecolorPipeline(job, provider=StubProvider()).run()
    assert written == [out]

    result = decode(out)
    assert np.all(result.rgb[:24] == (120, 0, 0))
    assert np.all(result.rgb[24:] == SKIN)


def test_several_colors_into_directory_with_mask(tmp_path, photo_path, seg_config):
    out_dir = tmp_path / "renders"
    job = _job(photo_path, out_dir, seg_config, colors=["caramel", "#1A2744"], save_mask=True)
    provider = StubProvider()

    written = HairRecolorPipeline(job, provider=provider).run()
    assert written == [
        out_dir / "portrait_mask.png",
        out_dir / "portrait_caramel.png",
        out_dir / "portrait_1a2744.png",
    ]
    assert all(path.exists() for path in written)
    assert provider.load_calls == 1
    assert provider.released


def test_several_colors_with_file_output(tmp_path, photo_path, seg_config):
    out = tmp_path / "look.jpg"
    job = _job(photo_path, out, seg_config, colors=["burgundy", "olive"])
    written = HairRecolorPipeline(job, provider=StubProvider()).run()
    assert written == [tmp_path / "look_burgundy.jpg", tmp_path / "look_olive.jpg"]


def test_output_format_for_directory(tmp_path, photo_path, seg_config):
    job = _job(photo_path, tmp_path / "dir", seg_config, colors=["olive"], output_format="webp")
    written = HairRecolorPipeline(job, provider=StubProvider()).run()
    assert written == [tmp_path / "dir" / "portrait_olive.webp"]


def test_bad_color_fails_before_loading(tmp_path, photo_path, seg_config):
    provider = StubProvider()
    job = _job(photo_path, tmp_path / "x.png", seg_config, colors=["#12"])
    with pytest.raises(InvalidColorFormat):
        HairRecolorPipeline(job, provider=provider)
    assert provider.load_calls == 0


def test_no_colors_rejected(tmp_path, photo_path, seg_config):
    with pytest.raises(ValueError):
        HairRecolorPipeline(_job(photo_path, tmp_path / "x.png", seg_config), provider=StubProvider())


def test_no_hair_writes_nothing(tmp_path, photo_path, seg_config):
    out = tmp_path / "none.png"
    job = _job(photo_path, out, seg_config, colors=["#ff0000"])
    provider = StubProvider(channels_fn=no_hair)
    with pytest.raises(HairRegionNotDetected):
        HairRecolorPipeline(job, provider=provider).run()
    assert not out.exists()
    assert provider.released
