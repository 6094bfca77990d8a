"""Path tracing integrator and parallel render kernel.

This module estimates the color seen along a ray by following it through the
scene, scattering it off materials until it escapes to the sky, is absorbed,
or runs out of bounces:

    color(ray, depth) = black                                   if depth <= 0
                      = attenuation * color(scattered, depth-1) if the hit scatters
                      = black                                   if the hit absorbs
                      = background(direction)                   if nothing is hit

Taichi functions cannot recurse, so ray_color runs the recursion as a loop
carrying the product of attenuations (the throughput).

The render kernel processes a band of rows in parallel. Every pixel averages
its jittered samples, applies gamma 2 and quantizes to 8 bits, and writes the
result into its own cell of a preallocated image field. Pixels draw from their
own random streams (stream id ``row * width + column``), so the result does
not depend on how the work is scheduled.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>> from pathtracer.core.integrator import (
    ...     get_image_numpy, render_image, setup_render_target
    ... )
    >>> from pathtracer.core.sampler import seed_streams
    >>> from pathtracer.scene.presets import create_basic_scene
    >>>
    >>> scene, camera = create_basic_scene(16.0 / 9.0)
    >>> setup_camera(camera)
    >>> setup_render_target(400, 225)
    >>> seed_streams(0, 400 * 225)
    >>> render_image(samples=100, max_depth=50)
    >>> image = get_image_numpy()
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.thin_lens import get_ray
from pathtracer.core.sampler import uniform
from pathtracer.core.vector import unit_vector, vec3
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.lambertian import scatter_lambertian_by_id
from pathtracer.materials.metal import scatter_metal_by_id
from pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)
from pathtracer.scene.world import intersect_scene

# =============================================================================
# Rendering Constants
# =============================================================================

# Smallest accepted hit distance; rejects re-hits of the surface a ray leaves
T_MIN = 0.001
T_MAX = 1e10

# Sky gradient endpoints
SKY_HORIZON = vec3(1.0, 1.0, 1.0)
SKY_ZENITH = vec3(0.5, 0.7, 1.0)

# Largest quantizable intensity after gamma; keeps 256 * x below 256
MAX_INTENSITY = 0.999

# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Preallocated so resizing never recompiles kernels
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Quantized RGB, indexed [row, column] with row 0 at the top
_image = ti.Vector.field(3, dtype=ti.i32, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Set the active image dimensions and clear the image.

    Args:
        width: Image width in pixels, in [2, MAX_IMAGE_WIDTH].
        height: Image height in pixels, in [2, MAX_IMAGE_HEIGHT].

    Raises:
        ValueError: If a dimension is below 2 or exceeds the maximum.
    """
    if width < 2 or height < 2:
        raise ValueError(f"Image dimensions ({width}x{height}) must be at least 2x2")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the image to black."""
    _image.fill(0)


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Light Transport
# =============================================================================


@ti.func
def background(direction: vec3) -> vec3:
    """Sky color seen along a ray that escapes the scene.

    Blends white at the horizon into light blue overhead based on the height
    of the normalized direction.
    """
    t = 0.5 * (unit_vector(direction).y + 1.0)
    return (1.0 - t) * SKY_HORIZON + t * SKY_ZENITH


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Dispatch to the scattering function of the hit surface's material.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The surface normal, facing the incoming ray.
        front_face: 1 if the ray hit the outside of the surface.
        stream: The caller's random stream.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). Unknown
        material IDs absorb the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, normal, stream
        )

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident_direction, normal, stream
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face, stream
        )

    return scattered_direction, attenuation, did_scatter


@ti.func
def ray_color(origin: vec3, direction: vec3, depth: ti.i32, stream: ti.i32) -> vec3:
    """Estimate the color arriving along a ray.

    Args:
        origin: The ray origin.
        direction: The ray direction (any non-zero length).
        depth: Remaining bounce budget. At most ``depth`` surfaces are hit;
            a path still bouncing when the budget runs out contributes black.
        stream: The caller's random stream.

    Returns:
        The estimated color (RGB, not clamped).
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction

    # Taichi functions allow a single return, so termination is tracked
    active = 1

    for _ in range(depth):
        if active == 1:
            rec = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * background(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    rec.material_id, ray_direction, rec.normal, rec.front_face, stream
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = rec.point
                    ray_direction = scattered_direction

    return color


@ti.func
def to_rgb8(color_sum: vec3, samples: ti.i32) -> tm.ivec3:
    """Convert a sum of samples into an 8-bit RGB triple.

    Averages, applies gamma 2 (square root), clamps to [0, 0.999] and scales
    by 256 with truncation, in that order.
    """
    scale = 1.0 / ti.cast(samples, ti.f32)
    rgb = tm.ivec3(0, 0, 0)
    for c in ti.static(range(3)):
        value = ti.sqrt(scale * color_sum[c])
        value = tm.clamp(value, 0.0, MAX_INTENSITY)
        rgb[c] = ti.cast(256.0 * value, ti.i32)
    return rgb


@ti.func
def _sample_pixel(
    column: ti.i32,
    row: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
) -> vec3:
    """Sum ``samples`` jittered estimates for one pixel.

    Row 0 is the top of the image while viewport t = 0 is the bottom, hence
    the flip in v.
    """
    stream = row * width + column
    color_sum = vec3(0.0, 0.0, 0.0)
    for _ in range(samples):
        u = (ti.cast(column, ti.f32) + uniform(stream)) / ti.cast(width - 1, ti.f32)
        v = (ti.cast(height - 1 - row, ti.f32) + uniform(stream)) / ti.cast(height - 1, ti.f32)
        ray = get_ray(u, v, stream)
        color_sum += ray_color(ray.origin, ray.direction, max_depth, stream)
    return color_sum


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows_kernel(
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
):
    # Each pixel writes only its own cell; no synchronization needed
    for row, column in ti.ndrange((row_start, row_end), width):
        color_sum = _sample_pixel(column, row, width, height, samples, max_depth)
        _image[row, column] = to_rgb8(color_sum, samples)


@ti.kernel
def _render_pixel_kernel(
    column: ti.i32,
    row: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples: ti.i32,
    max_depth: ti.i32,
) -> tm.ivec3:
    return to_rgb8(_sample_pixel(column, row, width, height, samples, max_depth), samples)


@ti.kernel
def _trace_ray_kernel(origin: vec3, direction: vec3, depth: ti.i32, stream: ti.i32) -> vec3:
    return ray_color(origin, direction, depth, stream)


# =============================================================================
# Public Rendering API
# =============================================================================


def _check_render_parameters(samples: int, max_depth: int) -> None:
    if samples < 1:
        raise ValueError(f"samples = {samples} must be at least 1")
    if max_depth < 1:
        raise ValueError(f"max_depth = {max_depth} must be at least 1")


def render_rows(row_start: int, row_end: int, samples: int, max_depth: int) -> None:
    """Render the rows [row_start, row_end) of the image in parallel.

    The camera, scene and random streams must be set up beforehand.

    Args:
        row_start: First row to render (0 = top).
        row_end: One past the last row to render.
        samples: Samples per pixel.
        max_depth: Maximum number of bounces per path.

    Raises:
        RuntimeError: If the render target has not been set up.
        ValueError: If the row range is invalid, or samples or max_depth
            are below 1.
    """
    _check_render_target_initialized()
    _check_render_parameters(samples, max_depth)

    width, height = get_image_dimensions()
    if not 0 <= row_start <= row_end <= height:
        raise ValueError(f"Row range [{row_start}, {row_end}) outside [0, {height})")
    if row_start == row_end:
        return

    _render_rows_kernel(row_start, row_end, width, height, samples, max_depth)


def render_image(samples: int, max_depth: int) -> None:
    """Render every row of the image.

    Raises:
        RuntimeError: If the render target has not been set up.
        ValueError: If samples or max_depth are below 1.
    """
    _check_render_target_initialized()
    _, height = get_image_dimensions()
    render_rows(0, height, samples, max_depth)


def render_pixel(column: int, row: int, samples: int, max_depth: int) -> tuple[int, int, int]:
    """Render a single pixel and return its quantized color.

    Draws from the same stream the render kernel would use for this pixel,
    so it reproduces the pixel of a full render when streams are reseeded.

    Args:
        column: Pixel column (0 = left).
        row: Pixel row (0 = top).
        samples: Samples per pixel.
        max_depth: Maximum number of bounces per path.

    Returns:
        Tuple of (R, G, B) values in [0, 255].

    Raises:
        RuntimeError: If the render target has not been set up.
        ValueError: If the pixel lies outside the image.
    """
    _check_render_target_initialized()
    _check_render_parameters(samples, max_depth)

    width, height = get_image_dimensions()
    if not (0 <= column < width and 0 <= row < height):
        raise ValueError(f"Pixel ({column}, {row}) outside {width}x{height} image")

    rgb = _render_pixel_kernel(column, row, width, height, samples, max_depth)
    return (int(rgb[0]), int(rgb[1]), int(rgb[2]))


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int,
    stream: int = 0,
) -> tuple[float, float, float]:
    """Evaluate ray_color for a single ray from Python.

    Args:
        origin: The ray origin.
        direction: The ray direction.
        depth: Remaining bounce budget.
        stream: Random stream to draw from.

    Returns:
        Tuple of (R, G, B) linear color values.
    """
    color = _trace_ray_kernel(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        depth,
        stream,
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def get_image_numpy() -> npt.NDArray[np.uint8]:
    """Get the rendered image as a NumPy array.

    Returns:
        Array of shape (height, width, 3) and dtype uint8, row 0 at the top.

    Raises:
        RuntimeError: If the render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    full_image = _image.to_numpy()
    return full_image[:height, :width, :].astype(np.uint8)
