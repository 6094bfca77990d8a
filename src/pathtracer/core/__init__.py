"""Core rendering module.

This module contains the fundamental building blocks for path tracing:

Components:
    vector: Vector algebra and random vector generation
    sampler: Per-pixel random streams
    ray: Ray data structure
    integrator: Light transport (ray_color) and the parallel render kernel
    renderer: Render driver with progress reporting

All compute-intensive operations use Taichi kernels.
"""

from .ray import Ray, make_ray, ray_at
from .sampler import (
    MAX_STREAMS,
    get_stream_count,
    sample_uniform,
    seed_streams,
    uniform,
    uniform_range,
)
from .vector import (
    cross,
    degrees_to_radians,
    dot,
    length,
    length_squared,
    near_zero,
    random_in_unit_disk,
    random_in_unit_sphere,
    random_unit_vector,
    random_vector,
    random_vector_range,
    reflect,
    reflectance,
    refract,
    unit_vector,
    vec3,
)

# Note: integrator and renderer are NOT imported here to avoid circular imports.
# Import directly from pathtracer.core.integrator or pathtracer.core.renderer.

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "MAX_STREAMS",
    "seed_streams",
    "get_stream_count",
    "sample_uniform",
    "uniform",
    "uniform_range",
    "vec3",
    "degrees_to_radians",
    "dot",
    "cross",
    "length",
    "length_squared",
    "unit_vector",
    "near_zero",
    "reflect",
    "refract",
    "reflectance",
    "random_vector",
    "random_vector_range",
    "random_in_unit_sphere",
    "random_unit_vector",
    "random_in_unit_disk",
]
