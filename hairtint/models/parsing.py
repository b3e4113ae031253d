"""
Face parsing (SegFormer ONNX) as a hair segmentation provider.
Produces per-label soft confidence channels: skin, hair, eyes, nose, mouth, etc.
"""

import cv2
import numpy as np
import onnxruntime as ort
from pathlib import Path
from typing import List, Optional, Tuple
import logging
from hairtint.io.buffers import PixelBuffer
from hairtint.models.loader import download_model
from hairtint.models.provider import MaskChannel, SegmentationProvider

logger = logging.getLogger(__name__)

# Label order of the face-parsing model (CelebAMask-HQ classes)
PARSING_LABELS = [
    'background', 'skin', 'nose', 'eye_g', 'l_eye', 'r_eye', 'l_brow', 'r_brow',
    'l_ear', 'r_ear', 'mouth', 'u_lip', 'l_lip', 'hair', 'hat', 'ear_r',
    'neck_l', 'neck', 'cloth',
]

IMAGENET_MEAN = np.array([0.485, 0.456, 0.406], dtype=np.float32)
IMAGENET_STD = np.array([0.229, 0.224, 0.225], dtype=np.float32)

def get_onnx_providers(preferred: str = 'cuda') -> List[str]:
    """Get available ONNX providers with fallback."""
    available = ort.get_available_providers()

    # CUDA (NVIDIA)
    if preferred == 'cuda' and 'CUDAExecutionProvider' in available:
        logger.info("Using CUDA (NVIDIA GPU) for face parsing")
        return ['CUDAExecutionProvider', 'CPUExecutionProvider']

    # DirectML (AMD/Intel GPU on Windows)
    if preferred in ('cuda', 'dml') and 'DmlExecutionProvider' in available:
        logger.info("Using DirectML (AMD/Intel GPU) for face parsing")
        return ['DmlExecutionProvider', 'CPUExecutionProvider']

    if preferred != 'cpu':
        logger.warning("No GPU available, using CPU for face parsing")
    return ['CPUExecutionProvider']


class FaceParsingProvider(SegmentationProvider):
    """
    Face parsing model used for hair masks.

    Channels are returned at the model's output resolution; resampling to
    the photo size happens in the mask interpreter.
    """

    name = "face-parsing"

    def __init__(self, cache_dir: Path, provider: str = 'cpu',
                 model_path: Optional[Path] = None):
        """
        Args:
            cache_dir: Directory for model cache
            provider: 'cuda', 'dml' or 'cpu'
            model_path: Use a local ONNX file instead of downloading
        """
        super().__init__()
        self.cache_dir = Path(cache_dir)
        self.provider = provider
        self.model_path = model_path
        self.session = None
        self.input_name = None
        self.input_size = (512, 512)

    def _load_model(self) -> None:
        model_path = self.model_path or download_model("face_parsing.onnx", self.cache_dir)
        if not Path(model_path).exists():
            raise FileNotFoundError(f"Face parsing model not found: {model_path}")

        self.session = ort.InferenceSession(str(model_path), providers=get_onnx_providers(self.provider))
        model_input = self.session.get_inputs()[0]
        self.input_name = model_input.name

        # Dynamic axes come back as strings; keep the 512x512 default then
        shape = model_input.shape
        if len(shape) == 4 and isinstance(shape[2], int) and isinstance(shape[3], int):
            self.input_size = (shape[3], shape[2])

        logger.info(f"FaceParsingProvider initialized, input size: {self.input_size}")

    def preprocess(self, rgb: np.ndarray) -> np.ndarray:
        """
        Resize, normalize and convert an RGB image to an NCHW tensor.
        """
        resized = cv2.resize(rgb, self.input_size, interpolation=cv2.INTER_LINEAR)
        normalized = (resized.astype(np.float32) / 255.0 - IMAGENET_MEAN) / IMAGENET_STD
        tensor = np.transpose(normalized, (2, 0, 1))
        return np.expand_dims(tensor, axis=0).astype(np.float32)

    @staticmethod
    def postprocess(output: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Turn model output into per-class probabilities.

        Args:
            output: (1, num_classes, H, W) logits or (1, H, W) class indices

        Returns:
            (probs, labels): probs is (num_classes, H, W) float32,
            labels the per-pixel argmax
        """
        if output.ndim == 4:
            logits = output[0].astype(np.float32)
            logits = logits - logits.max(axis=0, keepdims=True)
            exp = np.exp(logits)
            probs = exp / exp.sum(axis=0, keepdims=True)
        else:
            classes = output[0].astype(np.int64)
            probs = np.stack([(classes == i) for i in range(len(PARSING_LABELS))]).astype(np.float32)

        return probs, np.argmax(probs, axis=0)

    def _predict(self, pixels: PixelBuffer) -> List[MaskChannel]:
        tensor = self.preprocess(np.ascontiguousarray(pixels.rgb))
        outputs = self.session.run(None, {self.input_name: tensor})
        probs, labels = self.postprocess(outputs[0])

        # Only labels that win somewhere in the image are reported
        present = np.unique(labels)
        h, w = labels.shape
        channels = []
        for idx in present:
            if idx >= len(PARSING_LABELS):
                continue
            channels.append(MaskChannel(
                data=probs[idx],
                width=w,
                height=h,
                label=PARSING_LABELS[idx],
            ))

        logger.debug(f"Face parsing labels: {[c.label for c in channels]}")
        return channels

    def _release(self) -> None:
        self.session = None
