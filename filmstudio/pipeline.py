"""Film studio orchestrator: template resolution, slot caching, compose and export."""

import json
import logging
import os
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence, Union

import numpy as np

from filmstudio.compositing.assignment import Photo, PhotoAssignment, SlotAdjustment
from filmstudio.compositing.compositor import Decoder, compose
from filmstudio.errors import NoPhotosProvided, NoSlotsDetected, ResourceDecodeFailure
from filmstudio.export.encoders import A4_PAGE, PageGeometry
from filmstudio.export.paginator import ExportResult, export, normalize_format
from filmstudio.slot_detection.detector import PROFILES, Slot
from filmstudio.styles.catalog import DEFAULT_STYLE_ID, FilmStyle, get_style
from filmstudio.templates.catalog import BUILTIN_TEMPLATES, ImageTemplate, SyntheticTemplate
from filmstudio.templates.synthesizer import TemplateLayout

logger = logging.getLogger(__name__)

Template = Union[SyntheticTemplate, ImageTemplate]


@dataclass
class StudioConfig:
    """All tunable parameters in one place."""

    # Slot detection (uploaded templates)
    detection_profile: str = "upload"  # "upload" (8%, 0.5) or "studio" (6%, 0.4)
    slot_padding: int = 4
    row_tolerance: int = 30

    # Look
    style_id: str = DEFAULT_STYLE_ID
    draw_captions: bool = False
    grain_seed: Optional[int] = None  # None = fresh grain on every render

    # Output
    export_format: str = "paged-document"
    output_basename: str = "film-strip"
    jpeg_quality: int = 92
    page_margin_mm: float = 10.0
    pdf_title: Optional[str] = "Film Studio"

    # Resources
    decode_workers: int = 4
    page_workers: int = 4
    max_canvas_pixels: int = 100_000_000

    @classmethod
    def from_env(cls, prefix: str = "FILMSTUDIO_") -> "StudioConfig":
        """Build a config from environment variables, e.g. FILMSTUDIO_STYLE_ID."""
        config = cls()

        def _get(name: str) -> Optional[str]:
            value = os.getenv(prefix + name, "").strip()
            return value or None

        def _number(name: str, convert):
            raw = _get(name)
            if raw is None:
                return None
            try:
                return convert(raw)
            except ValueError:
                raise ValueError(f"Invalid value for {prefix}{name}: {raw!r}") from None

        if _get("DETECTION_PROFILE"):
            config.detection_profile = _get("DETECTION_PROFILE")
        if _get("STYLE_ID"):
            config.style_id = _get("STYLE_ID")
        if _get("EXPORT_FORMAT"):
            config.export_format = _get("EXPORT_FORMAT")
        if _get("JPEG_QUALITY"):
            config.jpeg_quality = _number("JPEG_QUALITY", int)
        if _get("GRAIN_SEED"):
            config.grain_seed = _number("GRAIN_SEED", int)
        if _get("PAGE_MARGIN_MM"):
            config.page_margin_mm = _number("PAGE_MARGIN_MM", float)
        if _get("DRAW_CAPTIONS"):
            config.draw_captions = _get("DRAW_CAPTIONS").lower() in ("1", "true", "yes", "on")

        return config


class FilmStudio:
    """Compose and export film strips from templates and photos."""

    def __init__(self, config: Optional[StudioConfig] = None, decoder: Optional[Decoder] = None) -> None:
        """Initialize the studio.

        Args:
            config: Studio configuration. If None, uses defaults.
            decoder: Optional photo decoder (defaults to the built-in loader)
        """
        self.config = config or StudioConfig()
        self.decoder = decoder
        self.step_times: Dict[str, float] = {}
        self._layouts: Dict[Template, TemplateLayout] = {}

    def template_from_reference(self, reference: str) -> Template:
        """A built-in template id, or otherwise a path/data URL to an image template."""
        for template in BUILTIN_TEMPLATES:
            if template.id == reference:
                return template
        if self.config.detection_profile not in PROFILES:
            raise ValueError(f"Unknown detection profile: {self.config.detection_profile}")
        return ImageTemplate(source=reference, profile=PROFILES[self.config.detection_profile])

    def resolve_template(self, template: Template) -> TemplateLayout:
        """Template raster plus slots; cached until a different template is requested.

        Raises:
            ResourceDecodeFailure: If an image template cannot be decoded
        """
        cached = self._layouts.get(template)
        if cached is not None:
            logger.debug("Using cached slot layout")
            return cached

        step_start = time.time()
        if isinstance(template, ImageTemplate):
            layout = template.resolve(padding=self.config.slot_padding, row_tolerance=self.config.row_tolerance)
        else:
            layout = template.resolve()
        self.step_times['resolve_template'] = time.time() - step_start
        logger.info(
            f"Template resolved: {len(layout.slots)} slot(s) "
            f"in {self.step_times['resolve_template']:.3f}s"
        )

        # Only the current template's layout is kept
        self._layouts = {template: layout}
        return layout

    def detect(self, template: Template) -> List[Slot]:
        return list(self.resolve_template(template).slots)

    def style(self, style: Optional[FilmStyle] = None) -> FilmStyle:
        return style or get_style(self.config.style_id)

    def _rng(self) -> Optional[np.random.Generator]:
        if self.config.grain_seed is None:
            return None
        return np.random.default_rng(self.config.grain_seed)

    def compose(
        self,
        photos: Sequence[Photo],
        template: Template,
        assignment: Optional[PhotoAssignment] = None,
        adjustments: Optional[Mapping[int, SlotAdjustment]] = None,
        style: Optional[FilmStyle] = None,
        debug_output_dir: Optional[str] = None,
    ) -> np.ndarray:
        """Render one sheet; photos beyond the slot count are ignored.

        Args:
            photos: Gallery photos, used for the default assignment
            template: Template to fill
            assignment: Explicit slot assignment; defaults to photos in order
            adjustments: Per-slot-index pan/zoom
            style: Film style; defaults to the configured style
            debug_output_dir: Optional directory for debug output

        Returns:
            Opaque uint8 RGBA raster
        """
        layout = self.resolve_template(template)
        if assignment is None:
            assignment = PhotoAssignment.from_photos(photos, len(layout.slots))

        step_start = time.time()
        raster = compose(
            layout.image,
            layout.slots,
            assignment,
            adjustments,
            self.style(style),
            rng=self._rng(),
            decoder=self.decoder,
            draw_captions=self.config.draw_captions,
            max_workers=self.config.decode_workers,
            max_pixels=self.config.max_canvas_pixels,
        )
        self.step_times['compose'] = time.time() - step_start
        logger.info(f"Compose time: {self.step_times['compose']:.3f}s")

        if debug_output_dir:
            self._save_debug(Path(debug_output_dir), layout, [raster])

        return raster

    def export(
        self,
        photos: Sequence[Photo],
        template: Template,
        style: Optional[FilmStyle] = None,
        export_format: Optional[str] = None,
        adjustments: Optional[Mapping[int, SlotAdjustment]] = None,
        debug_output_dir: Optional[str] = None,
    ) -> ExportResult:
        """Export all photos, paginating over as many template copies as needed.

        Raises:
            NoPhotosProvided: If ``photos`` is empty
            NoSlotsDetected: If the template has no usable slots or cannot be decoded
        """
        if not photos:
            raise NoPhotosProvided()
        export_format = normalize_format(export_format or self.config.export_format)

        try:
            layout = self.resolve_template(template)
        except ResourceDecodeFailure as e:
            logger.error(f"Template could not be loaded: {e}")
            raise NoSlotsDetected(f"Template could not be decoded: {e.reference}") from e

        step_start = time.time()
        result = export(
            photos,
            layout.image,
            layout.slots,
            self.style(style),
            export_format,
            adjustments=adjustments,
            rng=self._rng(),
            decoder=self.decoder,
            page=PageGeometry(
                name=A4_PAGE.name,
                width_mm=A4_PAGE.width_mm,
                height_mm=A4_PAGE.height_mm,
                margin_mm=self.config.page_margin_mm,
            ),
            basename=self.config.output_basename,
            title=self.config.pdf_title,
            jpeg_quality=self.config.jpeg_quality,
            draw_captions=self.config.draw_captions,
            max_workers=self.config.decode_workers,
            page_workers=self.config.page_workers,
            max_pixels=self.config.max_canvas_pixels,
        )
        self.step_times['export'] = time.time() - step_start
        logger.info(f"Export time: {self.step_times['export']:.3f}s")

        if debug_output_dir:
            self._save_debug(Path(debug_output_dir), layout, [p.raster for p in result.pages])

        return result

    def _save_debug(self, debug_dir: Path, layout: TemplateLayout, rasters: List[np.ndarray]) -> None:
        from filmstudio.utils.debug import (
            create_comparison_image,
            draw_slot_detections,
            save_debug_image,
            save_debug_text,
        )

        debug_dir.mkdir(parents=True, exist_ok=True)
        save_debug_image(layout.image, debug_dir / "01_template.jpg", "Template")
        save_debug_image(
            draw_slot_detections(layout.image, layout.slots),
            debug_dir / "02_slots_detected.jpg",
            f"Detected {len(layout.slots)} slots"
        )
        save_debug_text(
            json.dumps([asdict(slot) for slot in layout.slots], indent=2),
            debug_dir / "02_slots.json",
            "Slot list"
        )
        for i, raster in enumerate(rasters, 1):
            save_debug_image(raster, debug_dir / f"03_page_{i:02d}.jpg", f"Composited page {i}")
        if rasters:
            save_debug_image(
                create_comparison_image([layout.image, rasters[0]], labels=["template", "page 1"]),
                debug_dir / "04_comparison.jpg",
                "Template vs first page"
            )
