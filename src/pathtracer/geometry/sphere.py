"""Sphere primitive with ray-sphere intersection.

The intersection solves

    |origin + t * direction - center|^2 = radius^2

in half-b form, ``a t^2 + 2 half_b t + c = 0``, taking the nearer root when
it lies inside ``[t_min, t_max]`` and the farther root otherwise.

A negative radius flips the outward normal, turning the sphere inside out.
Nesting a negative-radius sphere inside a glass sphere models a hollow shell.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.geometry.sphere import Sphere, hit_sphere
    >>> sphere = Sphere(center=ti.math.vec3(0, 0, -1), radius=0.5, material_id=0)
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti

from pathtracer.core.vector import dot, length_squared, vec3
from pathtracer.geometry.hittable import HitRecord, make_miss_record, set_face_normal


@ti.dataclass
class Sphere:
    """A sphere defined by center point and radius.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius. Negative values invert the surface normal.
        material_id: Unified material ID of the sphere's surface.
    """

    center: vec3
    radius: ti.f32
    material_id: ti.i32


@ti.func
def hit_sphere(
    ray_origin: vec3,
    ray_direction: vec3,
    sphere: Sphere,
    t_min: ti.f32,
    t_max: ti.f32,
) -> HitRecord:
    """Test for ray-sphere intersection.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray (need not be normalized).
        sphere: The sphere to test against.
        t_min: Smallest accepted ray parameter.
        t_max: Largest accepted ray parameter.

    Returns:
        A HitRecord for the nearest root in [t_min, t_max], or a miss record.
    """
    oc = ray_origin - sphere.center
    a = length_squared(ray_direction)
    half_b = dot(oc, ray_direction)
    c = length_squared(oc) - sphere.radius * sphere.radius
    discriminant = half_b * half_b - a * c

    record = make_miss_record()

    if discriminant >= 0.0:
        sqrtd = ti.sqrt(discriminant)

        # Nearest root first
        root = (-half_b - sqrtd) / a
        valid = root >= t_min and root <= t_max
        if not valid:
            root = (-half_b + sqrtd) / a
            valid = root >= t_min and root <= t_max

        if valid:
            point = ray_origin + root * ray_direction
            outward_normal = (point - sphere.center) / sphere.radius
            front_face, normal = set_face_normal(ray_direction, outward_normal)
            record = HitRecord(
                hit=1,
                t=root,
                point=point,
                normal=normal,
                front_face=front_face,
                material_id=sphere.material_id,
            )

    return record


@ti.func
def make_sphere(center: vec3, radius: ti.f32, material_id: ti.i32) -> Sphere:
    """Create a sphere from center, radius and material ID."""
    return Sphere(center=center, radius=radius, material_id=material_id)
