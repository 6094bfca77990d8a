"""Geometry module for hit records and shape primitives.

Components:
    hittable: Hit record structure and face-normal orientation
    sphere: Sphere primitive with ray-sphere intersection

Intersection routines are Taichi functions (@ti.func) following the pattern:
    record = hit_shape(ray_origin, ray_direction, shape, t_min, t_max)
"""

from .hittable import HitRecord, make_miss_record, set_face_normal
from .sphere import Sphere, hit_sphere, make_sphere

__all__ = [
    "HitRecord",
    "make_miss_record",
    "set_face_normal",
    "Sphere",
    "hit_sphere",
    "make_sphere",
]
