"""Tests for slot detection on template images."""

import numpy as np
import pytest

from filmstudio.slot_detection.detector import (
    PROFILES,
    STUDIO_PROFILE,
    UPLOAD_PROFILE,
    Slot,
    blank_mask,
    detect_slots,
    detect_slots_with_profile,
    sort_reading_order,
    _flood_fill,
)
from filmstudio.templates.synthesizer import synthesize_template


def make_template(width, height, windows, background=40):
    """Dark opaque template with white windows given as (x1, y1, x2, y2), exclusive."""
    image = np.full((height, width, 4), background, dtype=np.uint8)
    image[:, :, 3] = 255
    for x1, y1, x2, y2 in windows:
        image[y1:y2, x1:x2, :3] = 255
    return image


class TestBlankMask:
    """Tests for blank pixel classification."""

    def test_white_is_blank(self):
        """Test that opaque white pixels are blank."""
        image = make_template(10, 10, [(0, 0, 5, 10)])
        mask = blank_mask(image)
        assert mask[:, :5].all()
        assert not mask[:, 5:].any()

    def test_saturated_bright_is_not_blank(self):
        """Test that bright but coloured pixels are not blank."""
        image = make_template(10, 10, [])
        image[:, :, :3] = (255, 255, 180)
        assert not blank_mask(image).any()

    def test_transparent_white_is_not_blank(self):
        """Test that see-through pixels are not blank."""
        image = make_template(10, 10, [(0, 0, 10, 10)])
        image[:, :, 3] = 0
        assert not blank_mask(image).any()

    def test_rgb_input(self):
        """Test that RGB buffers are treated as opaque."""
        image = np.full((8, 8, 3), 250, dtype=np.uint8)
        assert blank_mask(image).all()


class TestFloodFill:
    """Tests for the scanline flood fill."""

    def test_concave_region_counted_once(self):
        """Test that a U-shaped region is filled completely, each pixel once."""
        mask = np.zeros((100, 100), dtype=bool)
        mask[10:90, 10:90] = True
        mask[10:70, 45:55] = False  # Notch from the top makes a U
        visited = np.zeros_like(mask)

        region = _flood_fill(mask, visited, 12, 12)

        assert region.pixel_count == int(mask.sum())
        assert (region.min_x, region.min_y, region.max_x, region.max_y) == (10, 10, 89, 89)
        assert np.array_equal(visited, mask)

    def test_does_not_cross_diagonals(self):
        """Test 4-connectivity: diagonal neighbours are separate regions."""
        mask = np.zeros((4, 4), dtype=bool)
        mask[0, 0] = True
        mask[1, 1] = True
        visited = np.zeros_like(mask)

        region = _flood_fill(mask, visited, 0, 0)

        assert region.pixel_count == 1
        assert not visited[1, 1]


class TestDetectSlots:
    """Tests for detect_slots."""

    def test_padding_applied_to_raw_extent(self):
        """Test that the slot is the region extent shrunk by the padding."""
        # Columns 100..299 and rows 50..249 inclusive
        image = make_template(600, 400, [(100, 50, 300, 250)])

        slots = detect_slots(image)

        assert len(slots) == 1
        slot = slots[0]
        assert (slot.x, slot.y) == (104, 54)
        # Raw width is maxX - minX = 199
        assert (slot.width, slot.height) == (191, 191)
        assert slot.frame_number == 1

    def test_custom_padding(self):
        """Test a zero padding keeps the raw extent."""
        image = make_template(600, 400, [(100, 50, 300, 250)])

        slot = detect_slots(image, padding=0)[0]

        assert (slot.x, slot.y, slot.width, slot.height) == (100, 50, 199, 199)

    def test_reading_order(self):
        """Test slots are ordered by row band, then left to right."""
        image = make_template(600, 500, [
            (300, 50, 400, 150),   # Top row, right (higher by 10px)
            (50, 60, 150, 160),    # Top row, left
            (100, 250, 200, 350),  # Second row
        ])

        slots = detect_slots(image)

        assert [s.x for s in slots] == [54, 304, 104]
        assert [s.frame_number for s in slots] == [1, 2, 3]

    def test_no_slots_in_dark_template(self):
        """Test that a template without blank regions yields no slots."""
        image = make_template(300, 300, [])
        assert detect_slots(image) == []

    def test_thin_regions_rejected(self):
        """Test that lines and specks are not slots."""
        image = make_template(500, 500, [
            (50, 100, 450, 103),   # Horizontal line
            (200, 200, 205, 205),  # Speck
        ])
        assert detect_slots(image) == []

    def test_profiles_differ_in_min_size(self):
        """Test that a small window passes the studio profile but not upload."""
        # 35px square: raw extent 34, studio min 30, upload min 40
        image = make_template(500, 500, [(100, 100, 135, 135)])

        assert len(detect_slots_with_profile(image, STUDIO_PROFILE)) == 1
        assert detect_slots_with_profile(image, UPLOAD_PROFILE) == []

    def test_profiles_registry(self):
        """Test the named profiles and their thresholds."""
        assert PROFILES['studio'].min_size_ratio == 0.06
        assert PROFILES['studio'].min_fill_ratio == 0.4
        assert PROFILES['upload'].min_size_ratio == 0.08
        assert PROFILES['upload'].min_fill_ratio == 0.5

    def test_deterministic(self):
        """Test that detection is a pure function of the pixels."""
        image = make_template(600, 500, [(50, 60, 150, 160), (300, 50, 400, 150)])

        first = detect_slots(image)
        second = detect_slots(image)

        assert first == second

    def test_input_not_modified(self):
        """Test that the template buffer is left untouched."""
        image = make_template(300, 300, [(50, 50, 200, 200)])
        original = image.copy()

        detect_slots(image)

        np.testing.assert_array_equal(image, original)

    def test_slots_within_template(self):
        """Test every detected slot lies inside the template."""
        image = make_template(400, 300, [(0, 0, 400, 300)])

        slots = detect_slots(image)

        assert len(slots) == 1
        assert all(slot.fits_within(400, 300) for slot in slots)

    def test_synthesized_contact_sheet(self):
        """Test detection recovers the drawn contact sheet frames in order."""
        layout = synthesize_template('contact', 12, 900, 1200)

        slots = detect_slots(layout.image)

        assert len(slots) == 12
        for drawn, found in zip(layout.slots, slots):
            assert found.x == drawn.x + 4
            assert found.y == drawn.y + 4
            assert abs(found.width - (drawn.width - 9)) <= 1
            assert abs(found.height - (drawn.height - 9)) <= 1

    def test_synthesized_vertical_strip(self):
        """Test detection finds every frame of a drawn vertical strip."""
        layout = synthesize_template('vertical', 4, 600, 1000)

        slots = detect_slots_with_profile(layout.image, UPLOAD_PROFILE)

        assert len(slots) == 4
        assert [s.y for s in slots] == sorted(s.y for s in slots)


class TestSortReadingOrder:
    """Tests for row-band ordering."""

    def test_band_opens_at_topmost_slot(self):
        """Test the band is measured from its first slot, not chained."""
        slots = [
            Slot(x=200, y=0, width=10, height=10),
            Slot(x=0, y=25, width=10, height=10),
            Slot(x=100, y=50, width=10, height=10),
        ]

        ordered = sort_reading_order(slots, row_tolerance=30)

        assert [(s.x, s.y) for s in ordered] == [(0, 25), (200, 0), (100, 50)]

    def test_empty(self):
        """Test sorting an empty list."""
        assert sort_reading_order([]) == []


class TestSlot:
    """Tests for the Slot value type."""

    def test_rejects_empty_size(self):
        """Test that zero-sized slots are invalid."""
        with pytest.raises(ValueError):
            Slot(x=0, y=0, width=0, height=10)

    def test_bbox_and_aspect(self):
        """Test derived geometry."""
        slot = Slot(x=10, y=20, width=30, height=60)
        assert slot.bbox == (10, 20, 40, 80)
        assert slot.aspect_ratio == 0.5
        assert slot.fits_within(40, 80)
        assert not slot.fits_within(39, 80)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
