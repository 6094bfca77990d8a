"""Render driver with progress reporting.

The Renderer owns a single render: it sizes the render target, seeds one
random stream per pixel, and dispatches bands of rows to the parallel render
kernel. Between bands it reports progress through an optional callback and
through logging, so long renders show the classic "scanlines remaining"
countdown.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>> from pathtracer.core.renderer import Renderer
    >>> from pathtracer.scene.presets import create_basic_scene
    >>>
    >>> scene, camera = create_basic_scene(16.0 / 9.0)
    >>> setup_camera(camera)
    >>>
    >>> renderer = Renderer(400, 225, samples_per_pixel=100, max_depth=50)
    >>> image = renderer.render(rows_per_batch=16)
"""

import logging
import time
from collections.abc import Callable, Generator

import numpy as np
import numpy.typing as npt

from pathtracer.config import RenderSettings
from pathtracer.core.integrator import (
    get_image_numpy,
    render_rows,
    setup_render_target,
)
from pathtracer.core.sampler import seed_streams

logger = logging.getLogger(__name__)

# Callback receives (rows_done, rows_total)
ProgressCallback = Callable[[int, int], None]


class Renderer:
    """Renders the current scene and camera into an 8-bit image.

    Rendering with the same seed, scene and camera is byte-identical across
    runs and independent of ``rows_per_batch``.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Jittered samples averaged per pixel.
        max_depth: Maximum number of bounces per path.
        seed: Base seed for the per-pixel random streams.
    """

    def __init__(
        self,
        width: int,
        height: int,
        samples_per_pixel: int = 100,
        max_depth: int = 50,
        seed: int = 0,
    ) -> None:
        """Initialize the renderer.

        Raises:
            ValueError: If the dimensions are outside [2, 2048], or samples
                or max_depth are below 1.
        """
        if samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel = {samples_per_pixel} must be at least 1")
        if max_depth < 1:
            raise ValueError(f"max_depth = {max_depth} must be at least 1")

        setup_render_target(width, height)
        self._width = width
        self._height = height
        self.samples_per_pixel = samples_per_pixel
        self.max_depth = max_depth
        self.seed = seed

    @classmethod
    def from_settings(cls, settings: RenderSettings) -> "Renderer":
        """Create a renderer from validated RenderSettings."""
        settings.validate()
        return cls(
            settings.image_width,
            settings.image_height,
            samples_per_pixel=settings.samples_per_pixel,
            max_depth=settings.max_depth,
            seed=settings.seed,
        )

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    def render_progressive(self, rows_per_batch: int = 16) -> Generator[tuple[int, int], None, None]:
        """Render the image band by band, yielding progress after each band.

        Streams are reseeded at the start, so every call renders the same
        image from scratch.

        Args:
            rows_per_batch: Number of rows per kernel launch.

        Yields:
            Tuple of (rows_done, rows_total).

        Raises:
            ValueError: If rows_per_batch is below 1.
        """
        if rows_per_batch < 1:
            raise ValueError(f"rows_per_batch = {rows_per_batch} must be at least 1")

        # Re-assert dimensions; another renderer may share the render target
        setup_render_target(self._width, self._height)
        seed_streams(self.seed, self._width * self._height)

        rows_total = self._height
        row = 0
        while row < rows_total:
            row_end = min(row + rows_per_batch, rows_total)
            logger.info("Scanlines remaining: %d", rows_total - row)

            batch_start = time.perf_counter()
            render_rows(row, row_end, self.samples_per_pixel, self.max_depth)
            logger.debug(
                "Rendered rows %d-%d in %.3fs",
                row,
                row_end - 1,
                time.perf_counter() - batch_start,
            )

            row = row_end
            yield (row, rows_total)

    def render(
        self,
        rows_per_batch: int = 16,
        callback: ProgressCallback | None = None,
    ) -> npt.NDArray[np.uint8]:
        """Render the full image.

        Args:
            rows_per_batch: Number of rows per kernel launch. Smaller values
                give more frequent progress updates.
            callback: Optional callback called after each band with
                (rows_done, rows_total).

        Returns:
            The image as a uint8 array of shape (height, width, 3), row 0 at
            the top.
        """
        logger.info(
            "Rendering %dx%d, %d samples per pixel, max depth %d, seed %d",
            self._width,
            self._height,
            self.samples_per_pixel,
            self.max_depth,
            self.seed,
        )
        start = time.perf_counter()

        for rows_done, rows_total in self.render_progressive(rows_per_batch):
            if callback is not None:
                callback(rows_done, rows_total)

        logger.info("Done in %.2fs", time.perf_counter() - start)
        return get_image_numpy()

    def get_image_numpy(self) -> npt.NDArray[np.uint8]:
        """Get the current contents of the render target."""
        return get_image_numpy()

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"samples_per_pixel={self.samples_per_pixel}, max_depth={self.max_depth}, "
            f"seed={self.seed})"
        )
