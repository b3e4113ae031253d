"""
MediaPipe hair segmenter provider.
Returns two confidence masks per image: background, then hair.
"""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import mediapipe as mp
import numpy as np
from mediapipe.tasks import python as mp_python
from mediapipe.tasks.python import vision

from hairtint.io.buffers import PixelBuffer
from hairtint.models.loader import download_model
from hairtint.models.provider import MaskChannel, SegmentationProvider


class MediaPipeHairProvider(SegmentationProvider):
    name = "mediapipe-hair"

    def __init__(self, cache_dir: Path, model_path: Optional[Path] = None) -> None:
        super().__init__()
        self.cache_dir = Path(cache_dir)
        self.model_path = model_path
        self.segmenter = None

    def _load_model(self) -> None:
        model_path = self.model_path or download_model("hair_segmenter.tflite", self.cache_dir)
        options = vision.ImageSegmenterOptions(
            base_options=mp_python.BaseOptions(model_asset_path=str(model_path)),
            output_confidence_masks=True,
            output_category_mask=False,
        )
        self.segmenter = vision.ImageSegmenter.create_from_options(options)

    def _predict(self, pixels: PixelBuffer) -> List[MaskChannel]:
        rgb = np.ascontiguousarray(pixels.rgb)
        image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)
        result = self.segmenter.segment(image)

        channels = []
        for mask in result.confidence_masks or []:
            data = np.squeeze(mask.numpy_view()).astype(np.float32)
            h, w = data.shape[:2]
            channels.append(MaskChannel(data=data, width=w, height=h))
        return channels

    def _release(self) -> None:
        if self.segmenter is not None:
            self.segmenter.close()
            self.segmenter = None
