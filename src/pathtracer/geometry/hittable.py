"""Hit record structure and face orientation.

Every intersection routine returns a HitRecord. A record with ``hit == 0`` is
a miss and its other fields carry no meaning. For a hit, the normal always
faces against the incoming ray; ``front_face`` tells whether the ray arrived
from outside the surface. Dielectric scattering relies on this convention to
tell entering a medium from leaving it.
"""

import taichi as ti

from pathtracer.core.vector import dot, vec3


@ti.dataclass
class HitRecord:
    """Record of a ray-surface intersection.

    Attributes:
        hit: Whether the ray intersected the surface (1 if hit, 0 if miss).
        t: The ray parameter at the intersection.
        point: The intersection point.
        normal: The surface normal at the hit point, oriented against the
            incoming ray.
        front_face: 1 if the ray hit the outside of the surface, 0 otherwise.
        material_id: Unified material ID of the surface, -1 for none.
    """

    hit: ti.i32
    t: ti.f32
    point: vec3
    normal: vec3
    front_face: ti.i32
    material_id: ti.i32


@ti.func
def set_face_normal(ray_direction: vec3, outward_normal: vec3):
    """Orient a surface normal against the incoming ray.

    Args:
        ray_direction: Direction of the incoming ray.
        outward_normal: The geometric normal pointing out of the surface.

    Returns:
        A tuple of (front_face, normal) where front_face is 1 when the ray
        hits the outside of the surface and normal opposes ray_direction.
    """
    front_face = 0
    normal = -outward_normal
    if dot(ray_direction, outward_normal) < 0.0:
        front_face = 1
        normal = outward_normal
    return front_face, normal


@ti.func
def make_miss_record() -> HitRecord:
    """Create a HitRecord indicating no intersection."""
    return HitRecord(
        hit=0,
        t=0.0,
        point=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        front_face=0,
        material_id=-1,
    )
