"""Command-line interface for the film studio."""

import json
import logging
import sys
from dataclasses import asdict
from pathlib import Path
from typing import List, Optional

import click
from dotenv import load_dotenv

from filmstudio.compositing.assignment import Photo
from filmstudio.errors import FilmStudioError
from filmstudio.export.encoders import encode_jpeg, encode_png
from filmstudio.export.paginator import FORMAT_ALIASES, EXPORT_FORMATS
from filmstudio.pipeline import FilmStudio, StudioConfig
from filmstudio.slot_detection.detector import PROFILES
from filmstudio.styles.catalog import FILM_STYLES
from filmstudio.templates.catalog import BUILTIN_TEMPLATES, DEFAULT_CANVAS_SIZES, ImageTemplate
from filmstudio.templates.synthesizer import STYLES, synthesize_template
from filmstudio.utils.debug import draw_slot_detections, save_debug_image

# Load environment variables from .env
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%H:%M:%S'
)

logger = logging.getLogger(__name__)

STYLE_CHOICES = [s.id for s in FILM_STYLES]
FORMAT_CHOICES = list(EXPORT_FORMATS) + list(FORMAT_ALIASES)


def _set_verbose(verbose: bool) -> None:
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def _photos_from_paths(paths: tuple, captions: bool) -> List[Photo]:
    photos = []
    for i, path_str in enumerate(paths, 1):
        path = Path(path_str)
        photos.append(Photo(
            id=f"{i:03d}-{path.stem}",
            image_url=str(path),
            caption=path.stem.replace('_', ' ') if captions else None,
        ))
    return photos


def _write_raster(raster, output: Path, quality: int) -> None:
    output.parent.mkdir(parents=True, exist_ok=True)
    if output.suffix.lower() in ('.jpg', '.jpeg'):
        output.write_bytes(encode_jpeg(raster, quality))
    else:
        output.write_bytes(encode_png(raster))


@click.group()
@click.version_option(version='0.1.0')
def main() -> None:
    """Film Studio - Fill film strip templates with photos and export them."""
    pass


@main.command()
@click.argument('template', type=click.Path(exists=True, dir_okay=False))
@click.option(
    '--profile',
    type=click.Choice(sorted(PROFILES)),
    default='upload',
    show_default=True,
    help='Slot size thresholds: upload (8%) or studio (6%)'
)
@click.option('--json', 'as_json', is_flag=True, help='Print slots as JSON')
@click.option('--debug', 'debug_out', type=click.Path(), help='Save an annotated copy of the template here')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def detect(template: str, profile: str, as_json: bool, debug_out: Optional[str], verbose: bool) -> None:
    """Detect the photo slots of a template image.

    TEMPLATE: Template image with white photo windows
    """
    _set_verbose(verbose)

    try:
        layout = ImageTemplate(source=template, profile=PROFILES[profile]).resolve()
    except FilmStudioError as e:
        logger.error(str(e))
        sys.exit(1)

    if as_json:
        click.echo(json.dumps([asdict(slot) for slot in layout.slots], indent=2))
    else:
        if not layout.slots:
            click.echo("No usable slots found")
        for slot in layout.slots:
            click.echo(f"#{slot.frame_number}: x={slot.x} y={slot.y} {slot.width}x{slot.height}")

    if debug_out:
        save_debug_image(draw_slot_detections(layout.image, layout.slots), debug_out, "Detected slots")
        logger.info(f"Saved annotated template: {debug_out}")

    if not layout.slots:
        sys.exit(1)


@main.command()
@click.argument('style', type=click.Choice(STYLES))
@click.option('--slots', 'slot_count', type=int, default=4, show_default=True, help='Number of frames')
@click.option('--width', type=int, help='Canvas width (default depends on style)')
@click.option('--height', type=int, help='Canvas height (default depends on style)')
@click.option('--output', '-o', type=click.Path(dir_okay=False), required=True, help='Output PNG/JPEG')
def synthesize(
    style: str, slot_count: int, width: Optional[int], height: Optional[int], output: str
) -> None:
    """Draw a built-in template layout.

    STYLE: vertical, horizontal, contact or super8
    """
    default_width, default_height = DEFAULT_CANVAS_SIZES[style]
    width = default_width if width is None else width
    height = default_height if height is None else height

    try:
        layout = synthesize_template(style, slot_count, width, height)
    except ValueError as e:
        raise click.BadParameter(str(e))

    _write_raster(layout.image, Path(output), quality=95)
    logger.info(f"Saved {style} template with {len(layout.slots)} slots: {output}")


def _studio_options(func):
    """Options shared by compose and export."""
    func = click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')(func)
    func = click.option('--debug', is_flag=True, help='Save debug visualizations to ./debug')(func)
    func = click.option('--captions', is_flag=True, help='Stamp file names as captions')(func)
    func = click.option('--seed', type=int, help='Seed for reproducible grain and dust')(func)
    func = click.option(
        '--style', 'style_id', type=click.Choice(STYLE_CHOICES), help='Film style (default from config)'
    )(func)
    func = click.option(
        '--template',
        '-t',
        'template_ref',
        default=BUILTIN_TEMPLATES[0].id,
        show_default=True,
        help='Built-in template id or path to a template image'
    )(func)
    func = click.argument('photo_paths', nargs=-1, type=click.Path(exists=True, dir_okay=False))(func)
    return func


def _build_studio(style_id: Optional[str], seed: Optional[int], captions: bool) -> FilmStudio:
    try:
        config = StudioConfig.from_env()
    except ValueError as e:
        logger.error(str(e))
        sys.exit(1)
    if style_id:
        config.style_id = style_id
    if seed is not None:
        config.grain_seed = seed
    if captions:
        config.draw_captions = True
    return FilmStudio(config)


@main.command()
@_studio_options
@click.option('--output', '-o', type=click.Path(dir_okay=False), default='film-strip.png', show_default=True)
def compose(
    photo_paths: tuple,
    template_ref: str,
    style_id: Optional[str],
    seed: Optional[int],
    captions: bool,
    debug: bool,
    verbose: bool,
    output: str,
) -> None:
    """Render a single sheet (extra photos are ignored).

    PHOTO_PATHS: Photos in fill order
    """
    _set_verbose(verbose)
    studio = _build_studio(style_id, seed, captions)

    try:
        raster = studio.compose(
            _photos_from_paths(photo_paths, captions),
            studio.template_from_reference(template_ref),
            debug_output_dir='./debug' if debug else None,
        )
    except FilmStudioError as e:
        logger.error(str(e))
        sys.exit(1)

    _write_raster(raster, Path(output), studio.config.jpeg_quality)
    logger.info(f"Saved: {output}")


@main.command()
@_studio_options
@click.option('--format', 'export_format', type=click.Choice(FORMAT_CHOICES), help='Output format')
@click.option(
    '--output',
    '-o',
    'output_dir',
    type=click.Path(file_okay=False),
    default='./output',
    show_default=True,
    help='Output directory'
)
def export(
    photo_paths: tuple,
    template_ref: str,
    style_id: Optional[str],
    seed: Optional[int],
    captions: bool,
    debug: bool,
    verbose: bool,
    export_format: Optional[str],
    output_dir: str,
) -> None:
    """Export all photos, adding pages until every photo is placed.

    PHOTO_PATHS: Photos in fill order
    """
    _set_verbose(verbose)
    studio = _build_studio(style_id, seed, captions)

    try:
        result = studio.export(
            _photos_from_paths(photo_paths, captions),
            studio.template_from_reference(template_ref),
            export_format=export_format,
            debug_output_dir='./debug' if debug else None,
        )
    except FilmStudioError as e:
        logger.error(str(e))
        sys.exit(1)

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)
    for exported in result.files:
        (output_path / exported.filename).write_bytes(exported.data)
        logger.info(f"Saved: {exported.filename}")

    logger.info(f"\n{'=' * 60}")
    logger.info(f"COMPLETE: {len(photo_paths)} photo(s) on {result.page_count} page(s)")
    logger.info(f"Output directory: {output_path.absolute()}")
    logger.info(f"{'=' * 60}")


@main.command()
def styles() -> None:
    """List the available film styles."""
    for style in FILM_STYLES:
        click.echo(click.style(f"{style.id:<10}", bold=True) + f" {style.name} - {style.description}")
        click.echo(
            f"{'':<10} grain={style.grain:g} vignette={style.vignette:g} "
            f"leak={style.light_leak_opacity:g} dust={style.dust_opacity:g}"
            + (f" filter='{style.filter_expression}'" if style.filter_expression else "")
        )


@main.command()
def templates() -> None:
    """List the built-in templates."""
    for template in BUILTIN_TEMPLATES:
        width, height = template.size
        click.echo(
            click.style(f"{template.id:<16}", bold=True)
            + f" {template.name} - {template.description} "
            f"({template.slot_count} slots, {template.aspect_ratio}, {width}x{height})"
        )


if __name__ == '__main__':
    main()
