"""Tests for procedural templates and the built-in catalog."""

import numpy as np
import pytest

from filmstudio.templates.catalog import (
    BUILTIN_TEMPLATES,
    DEFAULT_CANVAS_SIZES,
    get_builtin_template,
)
from filmstudio.templates.synthesizer import (
    FILM_BASE,
    FRAME_FILL,
    STYLES,
    synthesize_template,
)


class TestSynthesizeTemplate:
    """Tests for synthesize_template."""

    @pytest.mark.parametrize("style,count", [
        ('vertical', 4),
        ('horizontal', 4),
        ('super8', 6),
        ('vertical', 1),
    ])
    def test_slot_count(self, style, count):
        """Test strips produce exactly the requested number of frames."""
        width, height = DEFAULT_CANVAS_SIZES[style]
        layout = synthesize_template(style, count, width, height)
        assert len(layout.slots) == count

    def test_contact_sheet_always_twelve(self):
        """Test the contact sheet ignores the requested count."""
        layout = synthesize_template('contact', 2, 900, 1200)
        assert len(layout.slots) == 12

    @pytest.mark.parametrize("style", STYLES)
    def test_slots_inside_canvas(self, style):
        """Test every slot lies within the canvas."""
        width, height = DEFAULT_CANVAS_SIZES[style]
        layout = synthesize_template(style, 4, width, height)
        assert layout.size == (width, height)
        assert all(slot.fits_within(width, height) for slot in layout.slots)

    @pytest.mark.parametrize("style", STYLES)
    def test_slots_are_white(self, style):
        """Test slot centres are painted with the frame fill."""
        width, height = DEFAULT_CANVAS_SIZES[style]
        layout = synthesize_template(style, 4, width, height)
        for slot in layout.slots:
            cx = slot.x + slot.width // 2
            cy = slot.y + slot.height // 2
            assert tuple(layout.image[cy, cx]) == FRAME_FILL

    def test_frame_numbers_sequential(self):
        """Test frames are numbered from 1 in fill order."""
        layout = synthesize_template('super8', 6, 600, 1000)
        assert [s.frame_number for s in layout.slots] == [1, 2, 3, 4, 5, 6]

    def test_vertical_frames_stack_downwards(self):
        """Test vertical strips fill top to bottom, horizontal left to right."""
        vertical = synthesize_template('vertical', 4, 600, 1000)
        horizontal = synthesize_template('horizontal', 4, 1200, 500)

        assert [s.y for s in vertical.slots] == sorted(s.y for s in vertical.slots)
        assert len({s.x for s in vertical.slots}) == 1
        assert [s.x for s in horizontal.slots] == sorted(s.x for s in horizontal.slots)
        assert len({s.y for s in horizontal.slots}) == 1

    def test_background_and_alpha(self):
        """Test the film base colour and full opacity."""
        layout = synthesize_template('vertical', 4, 600, 1000)
        assert layout.image.dtype == np.uint8
        assert layout.image.shape == (1000, 600, 4)
        assert tuple(layout.image[0, 0]) == FILM_BASE
        assert (layout.image[:, :, 3] == 255).all()

    def test_unknown_style(self):
        """Test an unknown style is rejected."""
        with pytest.raises(ValueError):
            synthesize_template('polaroid', 4, 600, 1000)

    def test_invalid_size(self):
        """Test non-positive canvas sizes are rejected."""
        with pytest.raises(ValueError):
            synthesize_template('vertical', 4, 0, 1000)

    def test_too_many_frames(self):
        """Test a canvas too small for the frames is rejected."""
        with pytest.raises(ValueError):
            synthesize_template('vertical', 1000, 600, 1000)

    def test_zero_frames(self):
        """Test a strip needs at least one frame."""
        with pytest.raises(ValueError):
            synthesize_template('horizontal', 0, 1200, 500)


class TestBuiltinTemplates:
    """Tests for the built-in template catalog."""

    def test_catalog_ids(self):
        """Test the four built-in layouts are present."""
        ids = [t.id for t in BUILTIN_TEMPLATES]
        assert ids == ['35mm-vertical', '35mm-horizontal', 'contact-sheet', 'super8']

    @pytest.mark.parametrize("template", BUILTIN_TEMPLATES, ids=lambda t: t.id)
    def test_resolve_matches_slot_count(self, template):
        """Test resolving a built-in template draws its declared slot count."""
        layout = template.resolve()
        assert len(layout.slots) == template.slot_count
        assert layout.size == template.size

    def test_lookup(self):
        """Test looking up a template by id."""
        assert get_builtin_template('super8').slot_count == 6

    def test_lookup_unknown(self):
        """Test an unknown id raises KeyError."""
        with pytest.raises(KeyError):
            get_builtin_template('medium-format')


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
