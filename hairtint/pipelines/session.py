"""
Editing session for one uploaded photo.

The decoded photo and its hair mask are extracted once and published as an
immutable snapshot. Every recolor starts from that snapshot's pristine pixels,
so slider moves never compound. Uploading a new photo (or clearing) replaces
the snapshot in one step and abandons any extraction still in flight.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Optional

from hairtint.errors import NoPhotoLoaded
from hairtint.hair_color.service import HairColorService, ProgressCallback
from hairtint.io.buffers import ConfidenceMask, PixelBuffer
from hairtint.io.image import ImageResource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionSnapshot:
    version: int
    pixels: PixelBuffer
    mask: ConfidenceMask


class EditingSession:
    def __init__(self, service: HairColorService, intensity: Optional[float] = None) -> None:
        self.service = service
        self.intensity = service.recolor_config.intensity if intensity is None else intensity
        self._lock = threading.Lock()
        self._version = 0
        self._ticket = 0
        self._snapshot: Optional[SessionSnapshot] = None
        self._preview: Optional[PixelBuffer] = None
        self._pending: Optional[asyncio.Future] = None

    @property
    def snapshot(self) -> Optional[SessionSnapshot]:
        return self._snapshot

    @property
    def preview(self) -> Optional[PixelBuffer]:
        return self._preview

    @property
    def has_photo(self) -> bool:
        return self._snapshot is not None

    def _start_version(self) -> int:
        with self._lock:
            self._version += 1
            version = self._version
            self._snapshot = None
            self._preview = None
            pending, self._pending = self._pending, None
        if pending is not None and not pending.done():
            pending.cancel()
        return version

    async def load_photo(
        self,
        photo: ImageResource,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Optional[SessionSnapshot]:
        """
        Extract the hair mask for a new photo.

        Returns:
            The new snapshot, or None if another photo was loaded (or the
            session cleared) before extraction finished
        """
        version = self._start_version()
        task = asyncio.ensure_future(self.service.extract_mask(photo, on_progress))
        self._pending = task

        try:
            hair = await task
        except asyncio.CancelledError:
            if version != self._version:
                logger.info(f"Mask extraction for photo v{version} abandoned")
                return None
            raise
        finally:
            if self._pending is task:
                self._pending = None

        with self._lock:
            if version != self._version:
                logger.info(f"Discarding stale mask for photo v{version}")
                return None
            snapshot = SessionSnapshot(version=version, pixels=hair.pixels, mask=hair.mask)
            self._snapshot = snapshot

        logger.info(f"Photo v{version} ready for recoloring ({hair.width}x{hair.height})")
        return snapshot

    def clear(self) -> None:
        self._start_version()

    def _current(self) -> SessionSnapshot:
        snapshot = self._snapshot
        if snapshot is None:
            raise NoPhotoLoaded("No photo has been loaded in this session")
        return snapshot

    def recolor(self, target_hex: str, intensity: Optional[float] = None) -> PixelBuffer:
        """Synchronous recolor of the current photo; becomes the preview."""
        snapshot = self._current()
        intensity = self.intensity if intensity is None else intensity
        result = self.service.recolor(snapshot.pixels, snapshot.mask, target_hex, intensity)

        with self._lock:
            self._ticket += 1
            if snapshot.version == self._version:
                self._preview = result
        return result

    async def request_recolor(
        self,
        target_hex: str,
        intensity: Optional[float] = None,
    ) -> Optional[PixelBuffer]:
        """
        Recolor off the event loop. Only the newest request wins: results of
        requests overtaken by a later one are dropped and None is returned.
        """
        snapshot = self._current()
        intensity = self.intensity if intensity is None else intensity

        with self._lock:
            self._ticket += 1
            ticket = self._ticket

        result = await asyncio.to_thread(
            self.service.recolor, snapshot.pixels, snapshot.mask, target_hex, intensity
        )

        with self._lock:
            if ticket != self._ticket or snapshot.version != self._version:
                logger.debug(f"Dropping superseded recolor #{ticket}")
                return None
            self._preview = result
        return result

    def preview_uri(self, fmt: str = 'png') -> Optional[str]:
        preview = self._preview
        if preview is None:
            return None
        return self.service.to_displayable(preview, fmt)
