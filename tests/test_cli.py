"""Tests for the command-line interface."""

import json

import numpy as np
import pytest
from click.testing import CliRunner
from PIL import Image

from filmstudio.cli import main


@pytest.fixture
def runner(monkeypatch):
    for name in ("STYLE_ID", "EXPORT_FORMAT", "GRAIN_SEED", "DETECTION_PROFILE", "DRAW_CAPTIONS",
                 "JPEG_QUALITY", "PAGE_MARGIN_MM"):
        monkeypatch.delenv(f"FILMSTUDIO_{name}", raising=False)
    return CliRunner()


@pytest.fixture
def photo_paths(tmp_path):
    paths = []
    for i, colour in enumerate([(200, 30, 30), (30, 200, 30), (30, 30, 200)]):
        path = tmp_path / f"photo_{i}.png"
        Image.fromarray(np.full((60, 90, 3), colour, dtype=np.uint8)).save(path)
        paths.append(str(path))
    return paths


class TestListing:
    """Tests for the listing commands."""

    def test_styles(self, runner):
        """Test every style id is listed."""
        result = runner.invoke(main, ['styles'])
        assert result.exit_code == 0
        for style_id in ('classic', 'tri-x', 'clean'):
            assert style_id in result.output

    def test_templates(self, runner):
        """Test every built-in template is listed."""
        result = runner.invoke(main, ['templates'])
        assert result.exit_code == 0
        assert '35mm-vertical' in result.output
        assert 'contact-sheet' in result.output


class TestSynthesizeAndDetect:
    """Tests for synthesize and detect."""

    def test_round_trip(self, runner, tmp_path):
        """Test a synthesized strip is detected with all its frames."""
        template = tmp_path / "strip.png"

        result = runner.invoke(main, ['synthesize', 'vertical', '--slots', '4', '-o', str(template)])
        assert result.exit_code == 0, result.output
        assert template.exists()

        result = runner.invoke(main, ['detect', str(template), '--json'])
        assert result.exit_code == 0, result.output
        slots = json.loads(result.output)
        assert [s['frame_number'] for s in slots] == [1, 2, 3, 4]

    def test_detect_no_slots(self, runner, tmp_path):
        """Test detect fails on a template without windows."""
        path = tmp_path / "dark.png"
        Image.fromarray(np.zeros((100, 100, 3), dtype=np.uint8)).save(path)

        result = runner.invoke(main, ['detect', str(path)])

        assert result.exit_code == 1
        assert 'No usable slots' in result.output

    def test_synthesize_invalid(self, runner, tmp_path):
        """Test bad layouts are reported as usage errors."""
        result = runner.invoke(main, ['synthesize', 'vertical', '--slots', '0', '-o', str(tmp_path / "x.png")])
        assert result.exit_code == 2

    @pytest.mark.parametrize("style, size", [
        ('horizontal', (1200, 500)),
        ('contact', (900, 1200)),
        ('vertical', (600, 1000)),
    ])
    def test_synthesize_default_size_per_style(self, runner, tmp_path, style, size):
        """Test each style gets its own canvas size when none is given."""
        output = tmp_path / f"{style}.png"

        result = runner.invoke(main, ['synthesize', style, '-o', str(output)])

        assert result.exit_code == 0, result.output
        with Image.open(output) as image:
            assert image.size == size

    def test_synthesize_explicit_size(self, runner, tmp_path):
        """Test --width and --height override the style default."""
        output = tmp_path / "wide.png"

        result = runner.invoke(main, ['synthesize', 'horizontal', '--width', '800',
                                      '--height', '300', '-o', str(output)])

        assert result.exit_code == 0, result.output
        with Image.open(output) as image:
            assert image.size == (800, 300)


class TestComposeAndExport:
    """Tests for compose and export."""

    def test_compose(self, runner, tmp_path, photo_paths):
        """Test rendering a single sheet to a file."""
        output = tmp_path / "sheet.jpg"

        result = runner.invoke(main, ['compose', *photo_paths, '-t', '35mm-horizontal',
                                      '--style', 'clean', '-o', str(output)])

        assert result.exit_code == 0, result.output
        assert output.read_bytes().startswith(b'\xff\xd8')

    def test_export_png_pages(self, runner, tmp_path, photo_paths):
        """Test exporting more photos than slots writes several pages."""
        out_dir = tmp_path / "out"
        template = tmp_path / "two.png"
        image = np.full((300, 400, 3), 20, dtype=np.uint8)
        image[40:260, 30:180] = 255
        image[40:260, 220:370] = 255
        Image.fromarray(image).save(template)

        result = runner.invoke(main, ['export', *photo_paths, '--template', str(template),
                                      '--format', 'png', '--seed', '1', '-o', str(out_dir)])

        assert result.exit_code == 0, result.output
        assert sorted(p.name for p in out_dir.iterdir()) == ['film-strip-01.png', 'film-strip-02.png']

    def test_export_pdf(self, runner, tmp_path, photo_paths):
        """Test the default paged document export."""
        out_dir = tmp_path / "out"

        result = runner.invoke(main, ['export', *photo_paths, '--captions', '-o', str(out_dir)])

        assert result.exit_code == 0, result.output
        assert (out_dir / "film-strip.pdf").read_bytes().startswith(b'%PDF')

    def test_export_without_photos(self, runner, tmp_path):
        """Test exporting nothing exits with an error."""
        result = runner.invoke(main, ['export', '-o', str(tmp_path / "out")])
        assert result.exit_code == 1

    def test_malformed_env_config(self, runner, tmp_path, photo_paths, monkeypatch):
        """Test a bad numeric variable exits cleanly instead of with a traceback."""
        monkeypatch.setenv("FILMSTUDIO_JPEG_QUALITY", "high")

        result = runner.invoke(main, ['compose', *photo_paths, '-o', str(tmp_path / "x.png")])

        assert result.exit_code == 1
        assert not (tmp_path / "x.png").exists()
        assert not isinstance(result.exception, ValueError)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
