"""Built-in scenes.

Each factory clears and populates the scene fields and returns the scene
manager together with a matching camera:

- basic: a diffuse sphere resting on a large diffuse ground sphere
- showcase: diffuse, hollow glass and fuzzy metal spheres side by side
- random: the classic cover scene, a field of small random spheres around
  three large feature spheres, seen through a lens with depth of field

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from pathtracer.camera.thin_lens import setup_camera
    >>> from pathtracer.scene.presets import create_preset
    >>>
    >>> scene, camera = create_preset("showcase", aspect_ratio=16.0 / 9.0)
    >>> setup_camera(camera)
"""

import logging
import math
import random
from collections.abc import Callable

from pathtracer.camera.thin_lens import Camera
from pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)


def _look_down_negative_z(aspect_ratio: float) -> Camera:
    return Camera(
        lookfrom=(0.0, 0.0, 0.0),
        lookat=(0.0, 0.0, -1.0),
        vup=(0.0, 1.0, 0.0),
        vfov=90.0,
        aspect_ratio=aspect_ratio,
    )


def create_basic_scene(aspect_ratio: float = 16.0 / 9.0) -> tuple[SceneManager, Camera]:
    """Create a gray sphere on a gray ground, viewed from the origin.

    Scene layout:
        - Ground: sphere at (0, -100.5, -1), radius 100
        - Subject: sphere at (0, 0, -1), radius 0.5
        - Camera at the origin looking down -z, 90 degree vertical FOV

    Args:
        aspect_ratio: Image width divided by height.

    Returns:
        Tuple of (scene_manager, camera).
    """
    scene = SceneManager()

    gray = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    scene.add_sphere(center=(0.0, -100.5, -1.0), radius=100.0, material_id=gray)
    scene.add_sphere(center=(0.0, 0.0, -1.0), radius=0.5, material_id=gray)

    return scene, _look_down_negative_z(aspect_ratio)


def create_material_showcase_scene(
    aspect_ratio: float = 16.0 / 9.0,
) -> tuple[SceneManager, Camera]:
    """Create three spheres showing each material type.

    Scene layout:
        - Ground: yellowish diffuse sphere at (0, -100.5, -1), radius 100
        - Center: blue diffuse sphere at (0, 0, -1)
        - Left: hollow glass sphere at (-1, 0, -1), outer radius 0.5 and an
          inverted inner surface of radius 0.45 sharing the same material
        - Right: fuzzy gold metal sphere at (1, 0, -1)

    Args:
        aspect_ratio: Image width divided by height.

    Returns:
        Tuple of (scene_manager, camera).
    """
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=(0.8, 0.8, 0.0))
    center = scene.add_lambertian_material(albedo=(0.1, 0.2, 0.5))
    glass = scene.add_dielectric_material(ir=1.5)
    gold = scene.add_metal_material(albedo=(0.8, 0.6, 0.2), fuzz=0.3)

    scene.add_sphere(center=(0.0, -100.5, -1.0), radius=100.0, material_id=ground)
    scene.add_sphere(center=(0.0, 0.0, -1.0), radius=0.5, material_id=center)
    scene.add_sphere(center=(-1.0, 0.0, -1.0), radius=0.5, material_id=glass)
    scene.add_sphere(center=(-1.0, 0.0, -1.0), radius=-0.45, material_id=glass)
    scene.add_sphere(center=(1.0, 0.0, -1.0), radius=0.5, material_id=gold)

    return scene, _look_down_negative_z(aspect_ratio)


def create_random_scene(
    aspect_ratio: float = 3.0 / 2.0,
    seed: int = 0,
) -> tuple[SceneManager, Camera]:
    """Create the cover scene of many small random spheres.

    Small spheres of radius 0.2 sit on a 22 x 22 grid with random jitter,
    skipping any that would touch the large metal sphere. Material odds are
    80% diffuse, 15% metal and 5% glass. All glass spheres share one
    material.

    Args:
        aspect_ratio: Image width divided by height.
        seed: Seed for sphere placement and colors. The same seed always
            builds the same scene.

    Returns:
        Tuple of (scene_manager, camera).
    """
    rng = random.Random(seed)
    scene = SceneManager()

    ground = scene.add_lambertian_material(albedo=(0.5, 0.5, 0.5))
    scene.add_sphere(center=(0.0, -1000.0, 0.0), radius=1000.0, material_id=ground)

    glass = scene.add_dielectric_material(ir=1.5)
    clearance_point = (4.0, 0.2, 0.0)

    for a in range(-11, 11):
        for b in range(-11, 11):
            choose_mat = rng.random()
            center = (a + 0.9 * rng.random(), 0.2, b + 0.9 * rng.random())

            if math.dist(center, clearance_point) <= 0.9:
                continue

            if choose_mat < 0.8:
                albedo = tuple(rng.random() * rng.random() for _ in range(3))
                scene.add_lambertian_sphere(center, 0.2, albedo)
            elif choose_mat < 0.95:
                albedo = tuple(rng.uniform(0.5, 1.0) for _ in range(3))
                fuzz = rng.uniform(0.0, 0.5)
                scene.add_metal_sphere(center, 0.2, albedo, fuzz)
            else:
                scene.add_sphere(center, 0.2, glass)

    scene.add_sphere(center=(0.0, 1.0, 0.0), radius=1.0, material_id=glass)
    scene.add_lambertian_sphere(center=(-4.0, 1.0, 0.0), radius=1.0, albedo=(0.4, 0.2, 0.1))
    scene.add_metal_sphere(center=(4.0, 1.0, 0.0), radius=1.0, albedo=(0.7, 0.6, 0.5), fuzz=0.0)

    logger.debug(
        "Random scene (seed %d): %d spheres, %d materials",
        seed,
        scene.get_sphere_count(),
        scene.get_material_count(),
    )

    camera = Camera(
        lookfrom=(13.0, 2.0, 3.0),
        lookat=(0.0, 0.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=20.0,
        aspect_ratio=aspect_ratio,
        aperture=0.1,
        focus_dist=10.0,
    )
    return scene, camera


def _basic(aspect_ratio: float, seed: int) -> tuple[SceneManager, Camera]:
    return create_basic_scene(aspect_ratio)


def _showcase(aspect_ratio: float, seed: int) -> tuple[SceneManager, Camera]:
    return create_material_showcase_scene(aspect_ratio)


PRESETS: dict[str, Callable[[float, int], tuple[SceneManager, Camera]]] = {
    "basic": _basic,
    "showcase": _showcase,
    "random": create_random_scene,
}


def create_preset(
    name: str,
    aspect_ratio: float = 16.0 / 9.0,
    seed: int = 0,
) -> tuple[SceneManager, Camera]:
    """Build a named preset scene.

    Args:
        name: One of the keys of PRESETS.
        aspect_ratio: Image width divided by height.
        seed: Seed for presets with random content.

    Raises:
        ValueError: If the name is unknown.
    """
    try:
        factory = PRESETS[name]
    except KeyError:
        raise ValueError(
            f"Unknown scene preset {name!r}; choose from {', '.join(sorted(PRESETS))}"
        ) from None
    return factory(aspect_ratio, seed)
