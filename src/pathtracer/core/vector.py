"""Vector algebra and random vector generation.

``vec3`` (Taichi's ``tm.vec3``) serves as a point, a direction and an RGB
color. The componentwise and scalar arithmetic operators are Taichi's own and
never clamp; colors are only clamped when pixels are quantized for output.

The random generators draw from a per-pixel stream (see
``pathtracer.core.sampler``) so concurrent pixel computations never share
generator state.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.core.vector import vec3, dot, unit_vector
    >>> # Within a Taichi kernel:
    >>> # n = unit_vector(vec3(0.0, 3.0, 4.0))  # (0.0, 0.6, 0.8)
"""

import math

import taichi as ti
import taichi.math as tm

from pathtracer.core.sampler import uniform, uniform_range

# Type alias for 3D vectors using Taichi's math module
vec3 = tm.vec3

# Magnitude below which every component counts as zero in near_zero()
NEAR_ZERO_EPSILON = 1e-8


def degrees_to_radians(degrees: float) -> float:
    """Convert an angle from degrees to radians."""
    return degrees * math.pi / 180.0


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product a . b."""
    return a.x * b.x + a.y * b.y + a.z * b.z


@ti.func
def cross(a: vec3, b: vec3) -> vec3:
    """Compute the cross product a x b."""
    return vec3(
        a.y * b.z - a.z * b.y,
        a.z * b.x - a.x * b.z,
        a.x * b.y - a.y * b.x,
    )


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector.

    Cheaper than length() when only comparing magnitudes.
    """
    return dot(v, v)


@ti.func
def length(v: vec3) -> ti.f32:
    """Compute the Euclidean length of a vector."""
    return ti.sqrt(length_squared(v))


@ti.func
def unit_vector(v: vec3) -> vec3:
    """Scale a vector to unit length.

    A zero-length input produces non-finite components. Callers are
    responsible for passing non-degenerate vectors.

    Args:
        v: The input vector.

    Returns:
        v divided by its own length.
    """
    return v / length(v)


@ti.func
def near_zero(v: vec3) -> ti.i32:
    """Check if a vector is near zero in all components.

    Used to catch degenerate scatter directions.

    Args:
        v: The vector to check.

    Returns:
        1 if every component has magnitude below NEAR_ZERO_EPSILON, 0 otherwise.
    """
    s = NEAR_ZERO_EPSILON
    return ti.abs(v.x) < s and ti.abs(v.y) < s and ti.abs(v.z) < s


@ti.func
def reflect(v: vec3, n: vec3) -> vec3:
    """Reflect a vector about a normal.

    Args:
        v: The incoming direction (pointing toward the surface).
        n: The surface normal (unit length).

    Returns:
        v - 2 (v . n) n
    """
    return v - 2.0 * dot(v, n) * n


@ti.func
def refract(uv: vec3, n: vec3, etai_over_etat: ti.f32) -> vec3:
    """Refract a unit direction through a surface using Snell's law.

    The refracted ray is split into the components perpendicular and
    parallel to the normal. The caller must rule out total internal
    reflection beforehand.

    Args:
        uv: The incoming direction (unit length).
        n: The surface normal facing the incoming ray (unit length).
        etai_over_etat: Ratio of refractive indices (incident / transmitted).

    Returns:
        The refracted direction.
    """
    cos_theta = ti.min(dot(-uv, n), 1.0)
    r_out_perp = etai_over_etat * (uv + cos_theta * n)
    r_out_parallel = -ti.sqrt(ti.abs(1.0 - length_squared(r_out_perp))) * n
    return r_out_perp + r_out_parallel


@ti.func
def reflectance(cosine: ti.f32, ref_idx: ti.f32) -> ti.f32:
    """Schlick's approximation of Fresnel reflectance.

    Args:
        cosine: Cosine of the angle between the incoming ray and the normal.
        ref_idx: Ratio of refractive indices.

    Returns:
        The approximate probability of reflection.
    """
    r0 = (1.0 - ref_idx) / (1.0 + ref_idx)
    r0 = r0 * r0
    return r0 + (1.0 - r0) * ((1.0 - cosine) ** 5)


# =============================================================================
# Random Sampling Utilities for Monte Carlo
# =============================================================================


@ti.func
def random_vector(stream: ti.i32) -> vec3:
    """Generate a vector with each component uniform in [0, 1)."""
    return vec3(uniform(stream), uniform(stream), uniform(stream))


@ti.func
def random_vector_range(stream: ti.i32, lo: ti.f32, hi: ti.f32) -> vec3:
    """Generate a vector with each component uniform in [lo, hi)."""
    return vec3(
        uniform_range(stream, lo, hi),
        uniform_range(stream, lo, hi),
        uniform_range(stream, lo, hi),
    )


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Generate a random point inside the unit ball.

    Rejection sampling: draws from the [-1, 1) cube until the point lies
    strictly inside the unit sphere.

    Args:
        stream: The caller's random stream.

    Returns:
        A random point with squared length < 1.
    """
    p = random_vector_range(stream, -1.0, 1.0)
    while length_squared(p) >= 1.0:
        p = random_vector_range(stream, -1.0, 1.0)
    return p


@ti.func
def random_unit_vector(stream: ti.i32) -> vec3:
    """Generate a random unit vector.

    This is the normalized version of random_in_unit_sphere().
    """
    return unit_vector(random_in_unit_sphere(stream))


@ti.func
def random_in_unit_disk(stream: ti.i32) -> vec3:
    """Generate a random point inside the unit disk in the xy-plane.

    Used for thin-lens depth of field.

    Returns:
        A random point (x, y, 0) with x^2 + y^2 < 1.
    """
    p = vec3(uniform_range(stream, -1.0, 1.0), uniform_range(stream, -1.0, 1.0), 0.0)
    while length_squared(p) >= 1.0:
        p = vec3(uniform_range(stream, -1.0, 1.0), uniform_range(stream, -1.0, 1.0), 0.0)
    return p
