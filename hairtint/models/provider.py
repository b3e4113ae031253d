"""
Segmentation provider interface.

A provider wraps a hair segmentation model behind an async API:
the model is loaded once (concurrent callers share the same in-flight load)
and inference runs in a worker thread so the event loop stays responsive.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import numpy as np

from hairtint.config import SegmentationConfig
from hairtint.errors import HairTintError, ModelUnavailable
from hairtint.io.buffers import PixelBuffer

logger = logging.getLogger(__name__)


class ProviderState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass
class MaskChannel:
    data: np.ndarray  # float32 confidences in [0, 1], flat or (height, width)
    width: int
    height: int
    label: Optional[str] = None


class SegmentationProvider(ABC):
    name = "base"

    def __init__(self) -> None:
        self._state = ProviderState.UNINITIALIZED
        self._load_task: Optional[asyncio.Task] = None
        self._infer_lock = threading.Lock()

    @property
    def state(self) -> ProviderState:
        return self._state

    async def load(self) -> None:
        """
        Load the model if needed. Callers arriving while a load is in
        flight await the same task; a failed load is retried on the next call.
        """
        if self._state is ProviderState.READY:
            return

        loop = asyncio.get_running_loop()
        task = self._load_task
        if task is None or task.get_loop() is not loop or (task.done() and self._state is ProviderState.FAILED):
            task = loop.create_task(self._load())
            self._load_task = task

        # Shielded so one cancelled caller does not abort the shared load
        await asyncio.shield(task)

    async def _load(self) -> None:
        self._state = ProviderState.LOADING
        logger.info(f"Loading segmentation model ({self.name})...")
        try:
            await asyncio.to_thread(self._load_model)
        except Exception as e:
            self._state = ProviderState.FAILED
            logger.error(f"Segmentation model ({self.name}) failed to load: {e}")
            raise ModelUnavailable(f"Could not load {self.name} model: {e}") from e
        self._state = ProviderState.READY
        logger.info(f"Segmentation model ({self.name}) ready")

    async def segment(self, pixels: PixelBuffer) -> List[MaskChannel]:
        """
        Run the model on a decoded photo.

        Returns:
            One or more confidence channels, each width*height floats in [0, 1]
        """
        await self.load()
        try:
            return await asyncio.to_thread(self._predict_locked, pixels)
        except HairTintError:
            raise
        except Exception as e:
            logger.error(f"Segmentation ({self.name}) failed: {e}")
            raise ModelUnavailable(f"Segmentation failed: {e}") from e

    def _predict_locked(self, pixels: PixelBuffer) -> List[MaskChannel]:
        with self._infer_lock:
            return self._predict(pixels)

    def close(self) -> None:
        if self._state is ProviderState.READY:
            self._release()
        self._state = ProviderState.UNINITIALIZED
        self._load_task = None

    @abstractmethod
    def _load_model(self) -> None:
        """Blocking model load. Runs in a worker thread."""

    @abstractmethod
    def _predict(self, pixels: PixelBuffer) -> List[MaskChannel]:
        """Blocking inference. Runs in a worker thread."""

    def _release(self) -> None:
        pass


def create_provider(config: SegmentationConfig) -> SegmentationProvider:
    # Lazy imports keep onnxruntime / mediapipe out of unrelated code paths
    if config.backend == 'mediapipe':
        from hairtint.models.hair_segmenter import MediaPipeHairProvider
        return MediaPipeHairProvider(cache_dir=config.model_cache_dir)

    from hairtint.models.parsing import FaceParsingProvider
    return FaceParsingProvider(cache_dir=config.model_cache_dir, provider=config.provider)
