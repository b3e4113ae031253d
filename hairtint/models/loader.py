import urllib.request
from pathlib import Path
import logging

logger = logging.getLogger(__name__)

MODELS = {
    "face_parsing.onnx": "https://huggingface.co/jonathandinu/face-parsing/resolve/main/model.onnx",
    "hair_segmenter.tflite": "https://storage.googleapis.com/mediapipe-models/image_segmenter/hair_segmenter/float32/1/hair_segmenter.tflite",
}

def download_model(model_name: str, cache_dir: Path) -> Path:
    cache_dir.mkdir(parents=True, exist_ok=True)
    model_path = cache_dir / model_name

    if not model_path.exists():
        url = MODELS.get(model_name)
        if not url:
            raise ValueError(f"Unknown model: {model_name}")

        # Download next to the target so an interrupted fetch never looks cached
        partial = model_path.with_name(model_path.name + ".part")
        logger.info(f"Downloading {model_name} to {model_path}...")
        try:
            urllib.request.urlretrieve(url, partial)
            partial.replace(model_path)
        finally:
            if partial.exists():
                partial.unlink()
        logger.info("Download complete.")

    return model_path
