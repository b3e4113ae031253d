import base64
import binascii
import cv2
import numpy as np
from pathlib import Path
from typing import Optional, Tuple, Union
import logging

from hairtint.errors import DecodeError, EncodeError
from hairtint.io.buffers import ConfidenceMask, PixelBuffer

logger = logging.getLogger(__name__)

ImageResource = Union[bytes, bytearray, memoryview, str, Path]

_FORMATS = {
    'png': ('.png', 'image/png'),
    'jpg': ('.jpg', 'image/jpeg'),
    'jpeg': ('.jpg', 'image/jpeg'),
    'webp': ('.webp', 'image/webp'),
}

def _read_bytes(resource: ImageResource) -> bytes:
    if isinstance(resource, (bytes, bytearray, memoryview)):
        return bytes(resource)

    if isinstance(resource, str) and resource.startswith('data:'):
        header, sep, payload = resource.partition(',')
        if not sep or ';base64' not in header:
            raise DecodeError("Only base64 data URIs are supported")
        try:
            return base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecodeError(f"Invalid base64 payload: {e}") from e

    path = Path(resource)
    if not path.is_file():
        raise DecodeError(f"Image not found: {path}")
    return path.read_bytes()

def _to_rgba(img: np.ndarray) -> np.ndarray:
    if img.dtype == np.uint16:
        img = (img / 257).astype(np.uint8)
    elif img.dtype != np.uint8:
        img = np.clip(img, 0, 255).astype(np.uint8)

    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)
    if img.shape[2] == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA)
    return cv2.cvtColor(img, cv2.COLOR_BGR2RGBA)

def fit_within(width: int, height: int, max_side: Optional[int]) -> Tuple[int, int]:
    """Scale (width, height) down so the longer side is at most max_side."""
    if not max_side or max(width, height) <= max_side:
        return width, height
    scale = max_side / max(width, height)
    return max(1, int(round(width * scale))), max(1, int(round(height * scale)))

def decode(resource: ImageResource, target_width: Optional[int] = None,
           target_height: Optional[int] = None) -> PixelBuffer:
    """
    Decode an encoded image into an RGBA PixelBuffer.

    Args:
        resource: Raw bytes, a base64 data URI, or a file path
        target_width: Resample to this width (bilinear)
        target_height: Resample to this height (bilinear)

    Returns:
        PixelBuffer at the requested size (native size if none given)
    """
    raw = _read_bytes(resource)
    if not raw:
        raise DecodeError("Empty image data")

    buf = np.frombuffer(raw, dtype=np.uint8)
    try:
        img = cv2.imdecode(buf, cv2.IMREAD_UNCHANGED)
        # IMREAD_COLOR applies EXIF orientation; only alpha images need UNCHANGED
        if img is not None and not (img.ndim == 3 and img.shape[2] == 4):
            img = cv2.imdecode(buf, cv2.IMREAD_COLOR)
    except cv2.error as e:
        raise DecodeError(f"Could not decode image: {e}") from e

    if img is None:
        raise DecodeError("Could not decode image data")

    buffer = PixelBuffer(np.ascontiguousarray(_to_rgba(img)))
    if target_width is None and target_height is None:
        return buffer

    w, h = buffer.width, buffer.height
    tw = int(target_width) if target_width is not None else max(1, int(round(w * target_height / h)))
    th = int(target_height) if target_height is not None else max(1, int(round(h * target_width / w)))
    return resize_pixels(buffer, tw, th)

def resize_pixels(buffer: PixelBuffer, width: int, height: int) -> PixelBuffer:
    """Bilinear resample of a pixel buffer (returns the same buffer if the size matches)."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid target size: {width}x{height}")
    if (buffer.width, buffer.height) == (width, height):
        return buffer
    resized = cv2.resize(buffer.data, (int(width), int(height)), interpolation=cv2.INTER_LINEAR)
    return PixelBuffer(np.ascontiguousarray(resized))

def resize_mask(mask: ConfidenceMask, width: int, height: int) -> ConfidenceMask:
    """Bilinear resample of a confidence mask."""
    if (mask.width, mask.height) == (width, height):
        return mask
    logger.debug(f"Resampling mask {mask.width}x{mask.height} -> {width}x{height}")
    resized = cv2.resize(mask.data, (int(width), int(height)), interpolation=cv2.INTER_LINEAR)
    return ConfidenceMask.from_array(resized)

def encode(buffer: PixelBuffer, fmt: str = 'png', quality: int = 95) -> bytes:
    fmt = fmt.lower().lstrip('.')
    if fmt not in _FORMATS:
        raise EncodeError(f"Unsupported output format: {fmt}")
    ext, _ = _FORMATS[fmt]

    params = []
    if ext == '.jpg':
        img = cv2.cvtColor(buffer.data, cv2.COLOR_RGBA2BGR)
        params = [cv2.IMWRITE_JPEG_QUALITY, int(quality)]
    else:
        img = cv2.cvtColor(buffer.data, cv2.COLOR_RGBA2BGRA)
        if ext == '.webp':
            params = [cv2.IMWRITE_WEBP_QUALITY, int(quality)]

    try:
        ok, encoded = cv2.imencode(ext, img, params)
    except cv2.error as e:
        raise EncodeError(f"Could not encode image: {e}") from e
    if not ok:
        raise EncodeError(f"Could not encode image as {fmt}")
    return encoded.tobytes()

def to_data_uri(buffer: PixelBuffer, fmt: str = 'png') -> str:
    data = encode(buffer, fmt)
    mime = _FORMATS[fmt.lower().lstrip('.')][1]
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"

def save(buffer: PixelBuffer, path: Path) -> Path:
    path = Path(path)
    fmt = path.suffix.lstrip('.') or 'png'
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(encode(buffer, fmt))
    return path

def save_mask(mask: ConfidenceMask, path: Path) -> Path:
    path = Path(path)
    ok, encoded = cv2.imencode('.png', mask.to_uint8())
    if not ok:
        raise EncodeError(f"Could not encode mask: {path}")
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(encoded.tobytes())
    return path
