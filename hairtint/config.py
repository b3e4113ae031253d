from pydantic import BaseModel, Field
from pathlib import Path
from typing import List, Literal, Optional

class SegmentationConfig(BaseModel):
    backend: Literal['parsing', 'mediapipe'] = 'parsing'
    provider: Literal['cuda', 'dml', 'cpu'] = 'cpu'  # ONNX Runtime execution provider
    model_cache_dir: Path = Field(default_factory=lambda: Path.home() / ".cache" / "hairtint")
    hair_label: str = 'hair'
    channel_index: Optional[int] = Field(default=None, ge=0)  # Overrides label/order lookup
    mask_mode: Literal['soft', 'binary'] = 'soft'
    threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    min_coverage: float = Field(default=0.001, ge=0.0, le=1.0)  # Fraction of pixels that must be hair
    max_side: Optional[int] = Field(default=1024, ge=64)  # Cap preview resolution for live recolor

class RecolorConfig(BaseModel):
    intensity: float = Field(default=70.0, ge=0.0, le=100.0)
    lightness_bias: float = Field(default=0.0, ge=0.0, le=0.2)  # Nudge toward target lightness

class RecolorJobConfig(RecolorConfig):
    input_path: Path
    output_path: Path
    colors: List[str] = Field(default_factory=list)  # Hex values or palette ids
    save_mask: bool = False
    output_format: Literal['png', 'jpg', 'webp'] = 'png'
    segmentation: SegmentationConfig = Field(default_factory=SegmentationConfig)
