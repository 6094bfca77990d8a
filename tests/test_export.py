"""Tests for image export."""

import numpy as np
import pytest
from PIL import Image as PILImage


def _test_image():
    """Build a 3x2 image with distinct pixels."""
    image = np.zeros((2, 3, 3), dtype=np.uint8)
    image[0, 0] = (255, 0, 0)
    image[0, 1] = (0, 255, 0)
    image[0, 2] = (0, 0, 255)
    image[1, 0] = (1, 2, 3)
    image[1, 1] = (128, 128, 128)
    image[1, 2] = (255, 255, 255)
    return image


class TestFormatPPM:
    """Tests for plain-text PPM formatting."""

    def test_exact_output(self):
        """Test header, row order and triple layout."""
        from pathtracer.output.export import format_ppm

        assert format_ppm(_test_image()) == (
            "P3\n"
            "3 2\n"
            "255\n"
            "255 0 0 0 255 0 0 0 255\n"
            "1 2 3 128 128 128 255 255 255\n"
        )

    def test_token_count(self):
        """Test that the body holds three values per pixel."""
        from pathtracer.output.export import format_ppm

        image = np.full((5, 7, 3), 42, dtype=np.uint8)
        lines = format_ppm(image).splitlines()

        assert lines[:3] == ["P3", "7 5", "255"]
        assert len(lines) == 3 + 5
        assert sum(len(line.split()) for line in lines[3:]) == 5 * 7 * 3

    @pytest.mark.parametrize("shape", [(4, 4), (4, 4, 4), (4,)])
    def test_bad_shape(self, shape):
        """Test that non-RGB arrays are rejected."""
        from pathtracer.output.export import format_ppm

        with pytest.raises(ValueError, match="shape"):
            format_ppm(np.zeros(shape, dtype=np.uint8))


class TestSaveImage:
    """Tests for writing image files."""

    def test_save_ppm(self, tmp_path):
        """Test writing a PPM file."""
        from pathtracer.output.export import format_ppm, save_ppm

        path = tmp_path / "out.ppm"
        save_ppm(_test_image(), path)
        assert path.read_text() == format_ppm(_test_image())

    def test_save_png_round_trip(self, tmp_path):
        """Test that PNG output preserves every pixel."""
        from pathtracer.output.export import save_png

        path = tmp_path / "out.png"
        save_png(_test_image(), path)

        with PILImage.open(path) as loaded:
            assert loaded.size == (3, 2)
            assert loaded.mode == "RGB"
            np.testing.assert_array_equal(np.asarray(loaded), _test_image())

    def test_save_image_picks_format_by_extension(self, tmp_path):
        """Test that .ppm is plain text and .png is binary."""
        from pathtracer.output.export import save_image

        ppm_path = tmp_path / "image.PPM"
        png_path = tmp_path / "image.png"
        save_image(_test_image(), ppm_path)
        save_image(_test_image(), png_path)

        assert ppm_path.read_text().startswith("P3\n")
        assert png_path.read_bytes().startswith(b"\x89PNG")

    def test_save_image_logs(self, tmp_path, caplog):
        """Test that a written file is logged."""
        import logging

        from pathtracer.output.export import save_image

        path = tmp_path / "logged.ppm"
        with caplog.at_level(logging.INFO, logger="pathtracer.output.export"):
            save_image(_test_image(), path)
        assert f"Wrote {path}" in caplog.messages

    def test_missing_directory_raises(self, tmp_path):
        """Test that write failures surface as OSError."""
        from pathtracer.output.export import save_image

        with pytest.raises(OSError):
            save_image(_test_image(), tmp_path / "missing" / "out.ppm")
        with pytest.raises(OSError):
            save_image(_test_image(), tmp_path / "missing" / "out.png")

    def test_unknown_extension(self, tmp_path):
        """Test that an extension Pillow does not know is rejected."""
        from pathtracer.output.export import save_image

        with pytest.raises(ValueError):
            save_image(_test_image(), tmp_path / "out.notaformat")
