"""Tests for the path tracing integrator.

This module tests the core path tracing functionality including:
- Render target setup and validation
- Sky background gradient
- Bounce budget and absorption in ray_color
- Gamma correction and 8-bit quantization
- Parallel row rendering of a small scene

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run, so module-level
imports of modules containing ti.field() declarations would fail.
"""

import numpy as np
import pytest
import taichi as ti


def _setup_basic_scene(width=20, height=10):
    """Build the basic scene at the given size and return its image dimensions."""
    from pathtracer.camera.thin_lens import setup_camera
    from pathtracer.core.integrator import setup_render_target
    from pathtracer.core.sampler import seed_streams
    from pathtracer.scene.presets import create_basic_scene

    _, camera = create_basic_scene(aspect_ratio=width / height)
    setup_camera(camera)
    setup_render_target(width, height)
    seed_streams(0, width * height)
    return width, height


class TestRenderTargetSetup:
    """Test render target initialization and management."""

    def test_setup_sets_dimensions(self):
        """Test that setup_render_target records the dimensions."""
        from pathtracer.core.integrator import get_image_dimensions, setup_render_target

        setup_render_target(64, 48)
        assert get_image_dimensions() == (64, 48)

    def test_setup_clears_image(self):
        """Test that a fresh render target is black."""
        from pathtracer.core.integrator import get_image_numpy, render_image, setup_render_target

        _setup_basic_scene(8, 4)
        render_image(samples=1, max_depth=1)
        assert get_image_numpy().max() > 0

        setup_render_target(8, 4)
        image = get_image_numpy()
        assert image.shape == (4, 8, 3)
        assert image.dtype == np.uint8
        assert image.max() == 0

    @pytest.mark.parametrize("width,height", [(1, 10), (10, 1), (0, 0), (2049, 10), (10, 2049)])
    def test_invalid_dimensions(self, width, height):
        """Test that dimensions outside [2, 2048] are rejected."""
        from pathtracer.core.integrator import setup_render_target

        with pytest.raises(ValueError):
            setup_render_target(width, height)

    def test_maximum_dimensions_accepted(self):
        """Test that the largest supported image is accepted."""
        from pathtracer.core.integrator import (
            MAX_IMAGE_HEIGHT,
            MAX_IMAGE_WIDTH,
            get_image_dimensions,
            setup_render_target,
        )

        setup_render_target(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT)
        assert get_image_dimensions() == (2048, 2048)

    def test_requires_setup(self):
        """Test that reading the image before setup raises."""
        from pathtracer.core.integrator import _render_target_initialized, get_image_numpy

        _render_target_initialized[None] = 0
        with pytest.raises(RuntimeError, match="setup_render_target"):
            get_image_numpy()


class TestBackground:
    """Test the sky gradient."""

    def _background(self, directions):
        from pathtracer.core.integrator import background
        from pathtracer.core.vector import vec3

        n = len(directions)
        inputs = ti.Vector.field(3, dtype=ti.f32, shape=n)
        results = ti.Vector.field(3, dtype=ti.f32, shape=n)
        for k, d in enumerate(directions):
            inputs[k] = d

        @ti.kernel
        def test_kernel():
            for k in range(n):
                d = inputs[k]
                results[k] = background(vec3(d[0], d[1], d[2]))

        test_kernel()
        return results.to_numpy()

    def test_gradient_endpoints(self):
        """Test zenith, horizon and nadir colors."""
        colors = self._background([(0.0, 1.0, 0.0), (1.0, 0.0, 0.0), (0.0, -1.0, 0.0)])

        np.testing.assert_allclose(colors[0], [0.5, 0.7, 1.0], atol=1e-6)
        np.testing.assert_allclose(colors[1], [0.75, 0.85, 1.0], atol=1e-6)
        np.testing.assert_allclose(colors[2], [1.0, 1.0, 1.0], atol=1e-6)

    def test_direction_length_ignored(self):
        """Test that the gradient uses the normalized direction."""
        colors = self._background([(0.0, 5.0, 0.0), (0.0, 0.2, 0.0)])
        np.testing.assert_allclose(colors[0], colors[1], atol=1e-6)


class TestRayColor:
    """Test the iterative light transport estimate."""

    def test_zero_depth_is_black(self):
        """Test that a path with no bounce budget contributes nothing."""
        from pathtracer.core.integrator import trace_ray

        assert trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), depth=0) == (0.0, 0.0, 0.0)

    def test_miss_returns_background(self):
        """Test that an empty scene shows the sky."""
        from pathtracer.core.integrator import trace_ray

        color = trace_ray((0.0, 0.0, 0.0), (0.0, 1.0, 0.0), depth=1)
        np.testing.assert_allclose(color, [0.5, 0.7, 1.0], atol=1e-6)

    def test_budget_exhausted_on_hit_is_black(self):
        """Test that a path still bouncing at the end of its budget is black."""
        from pathtracer.core.integrator import trace_ray

        _setup_basic_scene()
        color = trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0), depth=1)
        assert color == (0.0, 0.0, 0.0)

    def test_mirror_bounce_attenuates_sky(self):
        """Test that a perfect mirror reflects the sky scaled by its albedo."""
        from pathtracer.core.integrator import trace_ray
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_metal_sphere((0.0, -1000.0, 0.0), 1000.0, albedo=(0.5, 0.5, 0.5), fuzz=0.0)

        color = trace_ray((0.0, 1.0, 0.0), (0.0, -1.0, 0.0), depth=2)
        np.testing.assert_allclose(color, [0.25, 0.35, 0.5], atol=1e-5)

        # One bounce is not enough to reach the sky
        assert trace_ray((0.0, 1.0, 0.0), (0.0, -1.0, 0.0), depth=1) == (0.0, 0.0, 0.0)

    def test_trapped_ray_is_black(self):
        """Test that a ray bouncing inside a mirror sphere never reaches the sky."""
        from pathtracer.core.integrator import trace_ray
        from pathtracer.scene.manager import SceneManager

        scene = SceneManager()
        scene.add_metal_sphere((0.0, 0.0, -2.0), 1.0, albedo=(0.9, 0.9, 0.9), fuzz=0.0)

        color = trace_ray((0.0, 0.0, -2.0), (0.0, 0.0, -1.0), depth=5)
        assert color == (0.0, 0.0, 0.0)

    def test_lambertian_bounce_never_brighter_than_sky(self):
        """Test that diffuse bounces only attenuate the light."""
        from pathtracer.core.integrator import trace_ray

        _setup_basic_scene()
        for stream in range(32):
            color = trace_ray((0.0, 0.0, 0.0), (0.0, -0.2, -1.0), depth=50, stream=stream)
            assert all(0.0 <= c <= 1.0 for c in color)


class TestQuantization:
    """Test gamma correction and 8-bit quantization."""

    def _to_rgb8(self, color_sum, samples):
        from pathtracer.core.integrator import to_rgb8
        from pathtracer.core.vector import vec3

        result = ti.Vector.field(3, dtype=ti.i32, shape=())

        @ti.kernel
        def test_kernel(r: ti.f32, g: ti.f32, b: ti.f32, n: ti.i32):
            result[None] = to_rgb8(vec3(r, g, b), n)

        test_kernel(color_sum[0], color_sum[1], color_sum[2], samples)
        return tuple(int(c) for c in result[None])

    def test_white_is_255(self):
        """Test that full intensity clamps to 255."""
        assert self._to_rgb8((1.0, 1.0, 1.0), 1) == (255, 255, 255)

    def test_overbright_clamps(self):
        """Test that intensities above 1 still quantize to 255."""
        assert self._to_rgb8((9.0, 2.0, 1.5), 1) == (255, 255, 255)

    def test_gamma_applied_after_averaging(self):
        """Test average, then square root, then scale by 256."""
        # Average (1, 0.25, 0) -> gamma (1, 0.5, 0) -> (255, 128, 0)
        assert self._to_rgb8((4.0, 1.0, 0.0), 4) == (255, 128, 0)

    def test_black_is_zero(self):
        """Test that no light quantizes to 0."""
        assert self._to_rgb8((0.0, 0.0, 0.0), 10) == (0, 0, 0)


class TestRendering:
    """Test rendering of the basic scene at 20x10, 1 sample, depth 1."""

    def test_sky_and_ground_regions(self):
        """Test that the top rows show sky and the subject and ground are black."""
        from pathtracer.core.integrator import get_image_numpy, render_image

        _setup_basic_scene()
        render_image(samples=1, max_depth=1)
        image = get_image_numpy()

        assert image.shape == (10, 20, 3)
        # Top rows look up into the sky
        for row in (0, 1):
            assert (image[row, :, 2] == 255).all()
            assert (image[row, :, 0] > 0).all()
        # Bottom row hits the ground, which needs a second bounce to be lit
        assert image[9].max() == 0
        # Center of the image is the subject sphere
        for row in (4, 5, 6):
            for column in (9, 10):
                assert tuple(image[row, column]) == (0, 0, 0)
        # Sides of the middle row look past the sphere into the sky
        assert image[4, 0, 2] == 255
        assert image[4, 19, 2] == 255

    def test_sky_brighter_toward_horizon(self):
        """Test that the red channel grows from the top row downward."""
        from pathtracer.core.integrator import get_image_numpy, render_image

        _setup_basic_scene()
        render_image(samples=1, max_depth=1)
        image = get_image_numpy().astype(int)

        assert image[0, 0, 0] < image[3, 0, 0]

    def test_bands_match_full_render(self):
        """Test that rendering in bands gives the same image as one pass."""
        from pathtracer.core.integrator import get_image_numpy, render_image, render_rows
        from pathtracer.core.sampler import seed_streams

        width, height = _setup_basic_scene()
        render_image(samples=2, max_depth=4)
        full = get_image_numpy()

        seed_streams(0, width * height)
        for row_start in range(0, height, 3):
            render_rows(row_start, min(row_start + 3, height), samples=2, max_depth=4)
        banded = get_image_numpy()

        np.testing.assert_array_equal(full, banded)

    def test_render_pixel_matches_image(self):
        """Test that a single pixel reproduces the full render."""
        from pathtracer.core.integrator import get_image_numpy, render_image, render_pixel
        from pathtracer.core.sampler import seed_streams

        width, height = _setup_basic_scene()
        render_image(samples=3, max_depth=5)
        image = get_image_numpy()

        for column, row in [(0, 0), (10, 5), (19, 9), (7, 8)]:
            seed_streams(0, width * height)
            assert render_pixel(column, row, samples=3, max_depth=5) == tuple(image[row, column])

    def test_empty_row_range_is_noop(self):
        """Test that an empty band leaves the image untouched."""
        from pathtracer.core.integrator import get_image_numpy, render_rows

        _setup_basic_scene()
        render_rows(4, 4, samples=1, max_depth=1)
        assert get_image_numpy().max() == 0

    @pytest.mark.parametrize("row_start,row_end", [(-1, 3), (5, 11), (6, 5)])
    def test_invalid_row_range(self, row_start, row_end):
        """Test that bands outside the image are rejected."""
        from pathtracer.core.integrator import render_rows

        _setup_basic_scene()
        with pytest.raises(ValueError, match="Row range"):
            render_rows(row_start, row_end, samples=1, max_depth=1)

    def test_invalid_render_parameters(self):
        """Test that samples and max_depth below 1 are rejected."""
        from pathtracer.core.integrator import render_image, render_pixel

        _setup_basic_scene()
        with pytest.raises(ValueError, match="samples"):
            render_image(samples=0, max_depth=1)
        with pytest.raises(ValueError, match="max_depth"):
            render_image(samples=1, max_depth=0)
        with pytest.raises(ValueError, match="outside"):
            render_pixel(20, 0, samples=1, max_depth=1)
