"""Scene module for geometry storage and scene construction.

Components:
    world: Sphere storage and closest-hit queries
    manager: Unified material table and SceneManager builder
    presets: Built-in scenes (basic, showcase, random)
"""

from .manager import (
    MaterialInfo,
    MaterialType,
    SceneConfig,
    SceneManager,
    SphereInfo,
    get_material_type,
    get_material_type_index,
)
from .presets import (
    PRESETS,
    create_basic_scene,
    create_material_showcase_scene,
    create_preset,
    create_random_scene,
)
from .world import (
    MAX_SPHERES,
    add_sphere,
    clear_scene,
    get_sphere_count,
    intersect_scene,
)

__all__ = [
    # World
    "MAX_SPHERES",
    "add_sphere",
    "clear_scene",
    "get_sphere_count",
    "intersect_scene",
    # Manager
    "MaterialType",
    "MaterialInfo",
    "SphereInfo",
    "SceneConfig",
    "SceneManager",
    "get_material_type",
    "get_material_type_index",
    # Presets
    "PRESETS",
    "create_basic_scene",
    "create_material_showcase_scene",
    "create_random_scene",
    "create_preset",
]
