import typer
from pathlib import Path
from typing import List, Optional
from typing_extensions import Annotated
import logging
import sys

app = typer.Typer(help="Hair segmentation + live recolor tool")
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = ['.jpg', '.jpeg', '.png', '.webp', '.bmp']

def validate_input_file(path: Path, extensions: list = None) -> Path:
    """Validate that input file exists."""
    if not path.exists():
        raise typer.BadParameter(f"File not found: {path}")
    if extensions and path.suffix.lower() not in extensions:
        raise typer.BadParameter(f"Invalid file type. Expected: {extensions}")
    return path

def build_segmentation_config(backend: str, provider: str, mask_mode: str, threshold: float,
                              channel_index: Optional[int], max_side: int):
    from hairtint.config import SegmentationConfig

    if backend not in ['parsing', 'mediapipe']:
        raise typer.BadParameter("backend must be 'parsing' or 'mediapipe'")
    if provider not in ['cuda', 'dml', 'cpu']:
        raise typer.BadParameter("provider must be 'cuda', 'dml', or 'cpu'")
    if mask_mode not in ['soft', 'binary']:
        raise typer.BadParameter("mask_mode must be 'soft' or 'binary'")
    if not 0.0 <= threshold <= 1.0:
        raise typer.BadParameter("threshold must be between 0.0 and 1.0")
    if not 64 <= max_side <= 8192:
        raise typer.BadParameter("max_side must be between 64 and 8192")

    return SegmentationConfig(
        backend=backend,
        provider=provider,
        mask_mode=mask_mode,
        threshold=threshold,
        channel_index=channel_index,
        max_side=max_side,
    )

@app.command()
def recolor(
    input: Annotated[Path, typer.Option(help="Input photo")] = ...,
    output: Annotated[Path, typer.Option(help="Output image, or a directory for several colors")] = ...,
    color: Annotated[List[str], typer.Option(help="Target color: '#RRGGBB' or palette id (repeatable)")] = ...,
    intensity: Annotated[float, typer.Option(help="Color strength 0-100")] = 70.0,
    lightness_bias: Annotated[float, typer.Option(help="Pull toward target lightness 0.0-0.2")] = 0.0,
    backend: Annotated[str, typer.Option(help="Segmentation: 'parsing' (face parsing) or 'mediapipe'")] = "parsing",
    provider: Annotated[str, typer.Option(help="'cuda' (NVIDIA), 'dml' (AMD/Intel), or 'cpu'")] = "cpu",
    mask_mode: Annotated[str, typer.Option(help="'soft' (feathered) or 'binary' (hard edge)")] = "soft",
    threshold: Annotated[float, typer.Option(help="Hair confidence threshold 0.0-1.0")] = 0.5,
    channel_index: Annotated[Optional[int], typer.Option(help="Force a segmentation channel index")] = None,
    max_side: Annotated[int, typer.Option(help="Longest side of the working image")] = 1024,
    save_mask: Annotated[bool, typer.Option(help="Also write the hair mask as PNG")] = False,
):
    """
    Recolor the hair in a photo.

    Tips:
    - Keep --intensity around 60-85 for natural results
    - Use --lightness-bias 0.1-0.2 for very light or very dark targets
    - Pass --color several times to render a set of swatches
    """
    from hairtint.config import RecolorJobConfig
    from hairtint.errors import HairTintError
    from hairtint.pipelines.recolor_pipeline import HairRecolorPipeline
    from hairtint.utils.palette import resolve_color

    validate_input_file(input, IMAGE_EXTENSIONS)

    if not 0.0 <= intensity <= 100.0:
        raise typer.BadParameter("intensity must be between 0 and 100")
    if not 0.0 <= lightness_bias <= 0.2:
        raise typer.BadParameter("lightness_bias must be between 0.0 and 0.2")
    for value in color:
        try:
            resolve_color(value)
        except ValueError:
            raise typer.BadParameter(f"Unknown color: {value} (use '#RRGGBB' or a palette id)")

    config = RecolorJobConfig(
        input_path=input,
        output_path=output,
        colors=color,
        intensity=intensity,
        lightness_bias=lightness_bias,
        save_mask=save_mask,
        segmentation=build_segmentation_config(backend, provider, mask_mode, threshold,
                                               channel_index, max_side),
    )

    try:
        pipeline = HairRecolorPipeline(config)
        written = pipeline.run()
        for path in written:
            typer.echo(f"Saved: {path}")
    except HairTintError as e:
        logger.error(f"Recolor failed: {e}")
        typer.echo(e.user_message, err=True)
        raise typer.Exit(1)

@app.command()
def mask(
    input: Annotated[Path, typer.Option(help="Input photo")] = ...,
    output: Annotated[Path, typer.Option(help="Output mask PNG")] = ...,
    backend: Annotated[str, typer.Option(help="Segmentation: 'parsing' or 'mediapipe'")] = "parsing",
    provider: Annotated[str, typer.Option(help="'cuda', 'dml', or 'cpu'")] = "cpu",
    mask_mode: Annotated[str, typer.Option(help="'soft' or 'binary'")] = "soft",
    threshold: Annotated[float, typer.Option(help="Hair confidence threshold 0.0-1.0")] = 0.5,
    max_side: Annotated[int, typer.Option(help="Longest side of the working image")] = 1024,
):
    """
    Extract the hair mask only (grayscale PNG, white = hair).
    """
    import asyncio
    from hairtint.errors import HairTintError
    from hairtint.hair_color.service import HairColorService
    from hairtint.io.image import save_mask

    validate_input_file(input, IMAGE_EXTENSIONS)
    seg_config = build_segmentation_config(backend, provider, mask_mode, threshold, None, max_side)

    service = HairColorService(segmentation=seg_config)
    try:
        hair = asyncio.run(service.extract_mask(input, on_progress=lambda msg: logger.info(msg)))
        save_mask(hair.mask, output)
        typer.echo(f"Done! Mask saved to: {output}")
    except HairTintError as e:
        logger.error(f"Mask extraction failed: {e}")
        typer.echo(e.user_message, err=True)
        raise typer.Exit(1)
    finally:
        service.close()

@app.command()
def palette(
    intensity: Annotated[Optional[float], typer.Option(help="Show swatches shaded for this slider value")] = None,
):
    """
    List the built-in hair colors.
    """
    from hairtint.utils.palette import adjust_color_intensity, palette_rows

    if intensity is not None and not 0.0 <= intensity <= 100.0:
        raise typer.BadParameter("intensity must be between 0 and 100")

    for color_id, label, hex_color in palette_rows():
        shown = adjust_color_intensity(hex_color, intensity) if intensity is not None else hex_color
        typer.echo(f"{color_id:<22} {label:<18} {shown}")

if __name__ == "__main__":
    app()
