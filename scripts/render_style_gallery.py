#!/usr/bin/env python3
"""Render every built-in template in every film style from synthetic photos."""

import sys
import tempfile
from pathlib import Path

import numpy as np
from PIL import Image

# Add repo root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from filmstudio.compositing.assignment import Photo
from filmstudio.pipeline import FilmStudio, StudioConfig
from filmstudio.styles.catalog import FILM_STYLES
from filmstudio.templates.catalog import BUILTIN_TEMPLATES


def create_synthetic_photos(directory: Path, count: int = 12) -> list:
    """Create gradient photos with a coloured square so crops are easy to judge."""
    photos = []
    for i in range(count):
        hue_shift = i * 20
        img_array = np.zeros((600, 900, 3), dtype=np.uint8)
        img_array[:, :, 0] = np.linspace(40, 220, 900, dtype=np.uint8)[None, :]
        img_array[:, :, 1] = np.linspace(200, 60, 600, dtype=np.uint8)[:, None]
        img_array[:, :, 2] = (hue_shift * 3) % 256
        img_array[200:400, 350:550] = [240, 240, 80]  # Centre marker

        path = directory / f"synthetic_{i:02d}.jpg"
        Image.fromarray(img_array).save(path, quality=95)
        photos.append(Photo(id=f"synthetic-{i:02d}", image_url=str(path), caption=f"Frame {i + 1}"))
    return photos


def main():
    """Render the gallery."""
    output_dir = Path(__file__).parent.parent / "output" / "style_gallery"
    debug_dir = Path(__file__).parent.parent / "debug" / "style_gallery"
    output_dir.mkdir(parents=True, exist_ok=True)

    with tempfile.TemporaryDirectory() as tmp:
        print("Creating synthetic photos...")
        photos = create_synthetic_photos(Path(tmp))

        print(f"\nRendering {len(BUILTIN_TEMPLATES)} templates x {len(FILM_STYLES)} styles")
        print(f"  Output: {output_dir}")
        print(f"  Debug: {debug_dir}")

        try:
            for film_style in FILM_STYLES:
                studio = FilmStudio(StudioConfig(
                    style_id=film_style.id,
                    export_format='png',
                    output_basename='gallery',
                    grain_seed=1,
                    draw_captions=True,
                ))
                for template in BUILTIN_TEMPLATES:
                    result = studio.export(
                        photos,
                        template,
                        debug_output_dir=str(debug_dir / f"{template.id}_{film_style.id}"),
                    )
                    for exported in result.files:
                        name = f"{template.id}_{film_style.id}_{exported.filename}"
                        (output_dir / name).write_bytes(exported.data)
                    print(
                        f"  {template.id:<16} {film_style.id:<10} "
                        f"{result.page_count} page(s) in {studio.step_times['export']:.3f}s"
                    )

            print(f"\n✓ Gallery written to {output_dir}")

        except Exception as e:
            print(f"\n✗ Gallery rendering failed: {e}")
            import traceback

            traceback.print_exc()
            sys.exit(1)


if __name__ == "__main__":
    main()
