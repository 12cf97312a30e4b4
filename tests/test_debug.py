"""Tests for debug visualization helpers."""

import numpy as np
import pytest

from filmstudio.slot_detection.detector import Slot
from filmstudio.utils.debug import (
    SLOT_COLOR,
    create_comparison_image,
    draw_slot_detections,
    save_debug_image,
)


class TestDrawSlotDetections:
    """Tests for slot overlays."""

    def test_outline_drawn(self):
        """Test slot outlines are drawn on a copy."""
        image = np.zeros((200, 300, 4), dtype=np.uint8)
        image[:, :, 3] = 255
        slot = Slot(x=50, y=60, width=100, height=80, frame_number=1)

        out = draw_slot_detections(image, [slot])

        assert out.shape == (200, 300, 3)
        assert tuple(out[100, 50]) == SLOT_COLOR
        assert (image[:, :, :3] == 0).all()


class TestComparison:
    """Tests for comparison strips."""

    def test_common_height_with_gutter(self):
        """Test panels are scaled to one height and separated."""
        a = np.zeros((100, 50, 3), dtype=np.uint8)
        b = np.zeros((50, 50, 4), dtype=np.uint8)

        strip = create_comparison_image([a, b], labels=["a", "b"])

        assert strip.shape == (100, 50 + 12 + 100, 3)

    def test_shrinks_to_max_width(self):
        """Test wide strips are scaled down."""
        strip = create_comparison_image([np.zeros((10, 400, 3), dtype=np.uint8)], max_width=200)
        assert strip.shape[1] == 200

    def test_empty(self):
        """Test an empty list is rejected."""
        with pytest.raises(ValueError):
            create_comparison_image([])


def test_save_debug_image_forces_jpeg(tmp_path):
    """Test debug images are written as JPEG."""
    path = save_debug_image(np.ones((8, 8, 3), dtype=np.float32), tmp_path / "01_step.png")
    assert path.suffix == ".jpg"
    assert path.read_bytes().startswith(b"\xff\xd8")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
