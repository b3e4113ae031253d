"""
In-memory pixel and mask containers shared by the pipeline.

Both wrap a numpy array that is made read-only on construction, so a buffer
handed to the recolor engine cannot be modified in place by anyone.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np


@dataclass(frozen=True)
class PixelBuffer:
    data: np.ndarray  # (H, W, 4) uint8, RGBA order

    def __post_init__(self) -> None:
        if self.data.ndim != 3 or self.data.shape[2] != 4:
            raise ValueError(f"PixelBuffer expects (H, W, 4) RGBA data, got {self.data.shape}")
        if self.data.dtype != np.uint8:
            raise ValueError(f"PixelBuffer expects uint8 data, got {self.data.dtype}")
        self.data.setflags(write=False)

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> "PixelBuffer":
        """
        Build a buffer from gray (H, W), RGB (H, W, 3) or RGBA (H, W, 4) pixels.
        The input is always copied.
        """
        arr = np.asarray(pixels)
        if arr.dtype != np.uint8:
            arr = np.clip(np.rint(arr), 0, 255).astype(np.uint8)

        if arr.ndim == 2:
            arr = np.stack([arr, arr, arr], axis=-1)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError(f"Unsupported pixel array shape: {arr.shape}")

        if arr.shape[2] == 3:
            alpha = np.full(arr.shape[:2] + (1,), 255, dtype=np.uint8)
            arr = np.concatenate([arr, alpha], axis=-1)
        else:
            arr = arr.copy()

        return cls(np.ascontiguousarray(arr))

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def rgb(self) -> np.ndarray:
        return self.data[:, :, :3]

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.data.copy())


@dataclass(frozen=True)
class ConfidenceMask:
    data: np.ndarray  # (H, W) float32 in [0, 1]

    def __post_init__(self) -> None:
        if self.data.ndim != 2:
            raise ValueError(f"ConfidenceMask expects (H, W) data, got {self.data.shape}")
        if self.data.dtype != np.float32:
            raise ValueError(f"ConfidenceMask expects float32 data, got {self.data.dtype}")
        self.data.setflags(write=False)

    @classmethod
    def from_array(
        cls,
        values: np.ndarray,
        width: Optional[int] = None,
        height: Optional[int] = None,
    ) -> "ConfidenceMask":
        """
        Build a mask from float confidences in [0, 1] or uint8 values in [0, 255].
        Flat arrays need width and height.
        """
        arr = np.asarray(values)
        if arr.ndim == 1:
            if width is None or height is None:
                raise ValueError("width and height are required for a flat mask")
            if arr.size != width * height:
                raise ValueError(f"Mask has {arr.size} values, expected {width}x{height}")
            arr = arr.reshape(height, width)

        if arr.dtype == np.uint8:
            arr = arr.astype(np.float32) / 255.0
        else:
            arr = np.nan_to_num(arr.astype(np.float32), nan=0.0, posinf=1.0, neginf=0.0)
            arr = np.clip(arr, 0.0, 1.0)

        return cls(np.ascontiguousarray(arr, dtype=np.float32))

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    def coverage(self, threshold: float = 0.5) -> float:
        """Fraction of pixels with confidence above threshold."""
        if self.data.size == 0:
            return 0.0
        return float(np.count_nonzero(self.data > threshold)) / self.data.size

    def to_uint8(self) -> np.ndarray:
        return np.floor(self.data * 255.0 + 0.5).astype(np.uint8)
