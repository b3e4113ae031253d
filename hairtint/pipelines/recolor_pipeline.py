import asyncio
from tqdm import tqdm
from hairtint.config import RecolorJobConfig
from hairtint.hair_color.service import HairColorService
from hairtint.io.image import save, save_mask
from hairtint.models.provider import SegmentationProvider
from hairtint.utils.palette import resolve_color
from pathlib import Path
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

class HairRecolorPipeline:
    def __init__(self, config: RecolorJobConfig, provider: Optional[SegmentationProvider] = None):
        if not config.colors:
            raise ValueError("At least one color is required")

        self.config = config
        self.service = HairColorService(
            segmentation=config.segmentation,
            provider=provider,
            recolor_config=config,
        )
        # Resolve up front so a typo fails before the model loads
        self.colors = [(value, resolve_color(value)) for value in config.colors]

    def _output_path(self, value: str, hex_color: str) -> Path:
        out = self.config.output_path
        ext = f".{self.config.output_format}"
        slug = value.lower() if not value.startswith('#') else hex_color.lstrip('#')

        if out.suffix:
            if len(self.colors) == 1:
                return out
            return out.with_name(f"{out.stem}_{slug}{out.suffix}")
        return out / f"{self.config.input_path.stem}_{slug}{ext}"

    def _mask_path(self) -> Path:
        out = self.config.output_path
        if out.suffix:
            return out.with_name(f"{out.stem}_mask.png")
        return out / f"{self.config.input_path.stem}_mask.png"

    def run(self) -> List[Path]:
        print(f"Recoloring hair: {self.config.input_path} -> {self.config.output_path}")
        try:
            hair = asyncio.run(self.service.extract_mask(
                self.config.input_path,
                on_progress=lambda msg: logger.info(msg),
            ))
        finally:
            self.service.close()

        written = []
        if self.config.save_mask:
            written.append(save_mask(hair.mask, self._mask_path()))

        for value, hex_color in tqdm(self.colors, desc="colors"):
            result = self.service.recolor(hair.pixels, hair.mask, hex_color, self.config.intensity)
            path = save(result, self._output_path(value, hex_color))
            logger.info(f"{hex_color} @ {self.config.intensity:.0f}% -> {path}")
            written.append(path)

        return written
