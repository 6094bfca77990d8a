"""Render settings and JSON scene files.

A scene file bundles everything needed to reproduce a render:

    {
        "render": {"image_width": 400, "aspect_ratio": 1.777, "samples_per_pixel": 100,
                   "max_depth": 50, "seed": 0},
        "camera": {"lookfrom": [0, 0, 0], "lookat": [0, 0, -1], "vup": [0, 1, 0],
                   "vfov": 90, "aperture": 0.0, "focus_dist": 1.0},
        "materials": [{"type": "lambertian", "albedo": [0.5, 0.5, 0.5]}, ...],
        "spheres": [{"center": [0, 0, -1], "radius": 0.5, "material_id": 0}, ...]
    }

The camera takes its aspect ratio from the render settings so the viewport
always matches the image.
"""

import json
import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

from pathtracer.camera.thin_lens import Camera
from pathtracer.core.integrator import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH
from pathtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)


@dataclass
class RenderSettings:
    """Image and sampling parameters for a render.

    Attributes:
        image_width: Output width in pixels.
        aspect_ratio: Width divided by height.
        samples_per_pixel: Jittered samples averaged per pixel.
        max_depth: Maximum number of bounces per path.
        seed: Base seed for the per-pixel random streams.
    """

    image_width: int = 400
    aspect_ratio: float = 16.0 / 9.0
    samples_per_pixel: int = 100
    max_depth: int = 50
    seed: int = 0

    @property
    def image_height(self) -> int:
        """Output height in pixels, derived from width and aspect ratio."""
        return int(self.image_width / self.aspect_ratio)

    def validate(self) -> None:
        """Check the settings.

        Raises:
            ValueError: If samples or depth are below 1, the aspect ratio is
                not positive, or the image is smaller than 2x2 or larger than
                the render target.
        """
        if self.samples_per_pixel < 1:
            raise ValueError(f"samples_per_pixel = {self.samples_per_pixel} must be at least 1")
        if self.max_depth < 1:
            raise ValueError(f"max_depth = {self.max_depth} must be at least 1")
        if self.aspect_ratio <= 0.0:
            raise ValueError(f"aspect_ratio = {self.aspect_ratio} must be positive")

        width, height = self.image_width, self.image_height
        if width < 2 or height < 2:
            raise ValueError(f"Image dimensions ({width}x{height}) must be at least 2x2")
        if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({width}x{height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )


def _triple(data: dict[str, Any], key: str, default: tuple[float, float, float]):
    value = data.get(key, default)
    try:
        x, y, z = value
        return (float(x), float(y), float(z))
    except (TypeError, ValueError) as e:
        raise ValueError(f"camera.{key} must be a list of three numbers, got {value!r}") from e


def settings_from_dict(data: dict[str, Any]) -> RenderSettings:
    """Build RenderSettings from a dictionary, ignoring unknown keys.

    Raises:
        ValueError: If data is not a dictionary or a value has the wrong type.
    """
    if not isinstance(data, dict):
        raise ValueError(f"render section must be an object, got {data!r}")
    known = {f.name for f in fields(RenderSettings)}
    kwargs: dict[str, Any] = {}
    for key, value in data.items():
        if key not in known:
            logger.warning("Ignoring unknown render setting %r", key)
            continue
        try:
            kwargs[key] = float(value) if key == "aspect_ratio" else int(value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"render.{key} has invalid value {value!r}") from e
    return RenderSettings(**kwargs)


def camera_from_dict(data: dict[str, Any], aspect_ratio: float) -> Camera:
    """Build a Camera from a dictionary.

    Args:
        data: Camera parameters. Missing keys take the defaults of a camera
            at the origin looking down -z with a 90 degree field of view.
        aspect_ratio: Image aspect ratio for the viewport.

    Raises:
        ValueError: If data is not a dictionary or a value has the wrong type.
    """
    if not isinstance(data, dict):
        raise ValueError(f"camera section must be an object, got {data!r}")
    try:
        return Camera(
            lookfrom=_triple(data, "lookfrom", (0.0, 0.0, 0.0)),
            lookat=_triple(data, "lookat", (0.0, 0.0, -1.0)),
            vup=_triple(data, "vup", (0.0, 1.0, 0.0)),
            vfov=float(data.get("vfov", 90.0)),
            aspect_ratio=aspect_ratio,
            aperture=float(data.get("aperture", 0.0)),
            focus_dist=float(data.get("focus_dist", 1.0)),
        )
    except (TypeError, ValueError) as e:
        raise ValueError(f"Invalid camera configuration: {e}") from e


def camera_to_dict(camera: Camera) -> dict[str, Any]:
    """Export a Camera to a dictionary (the aspect ratio lives in the render settings)."""
    data = asdict(camera)
    data.pop("aspect_ratio")
    for key in ("lookfrom", "lookat", "vup"):
        data[key] = list(data[key])
    return data


def load_scene_file(path: str | Path, scene: SceneManager) -> tuple[Camera, RenderSettings]:
    """Load a JSON scene file into a SceneManager.

    Args:
        path: Path to the scene file.
        scene: Scene to populate. It is cleared first and left empty if the
            file is rejected.

    Returns:
        Tuple of (camera, render_settings).

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is malformed.
    """
    path = Path(path)
    scene.clear()
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ValueError(f"Scene file {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Scene file {path} must contain a JSON object")

    settings = settings_from_dict(data.get("render", {}))
    camera = camera_from_dict(data.get("camera", {}), settings.aspect_ratio)
    scene.from_dict(data)

    logger.info(
        "Loaded scene file %s (%d materials, %d spheres)",
        path,
        scene.get_material_count(),
        scene.get_sphere_count(),
    )
    return camera, settings


def save_scene_file(
    path: str | Path,
    scene: SceneManager,
    camera: Camera,
    settings: RenderSettings,
) -> None:
    """Write a scene, camera and render settings to a JSON scene file.

    Raises:
        OSError: If the file cannot be written.
    """
    data = {
        "render": asdict(settings),
        "camera": camera_to_dict(camera),
        **scene.to_dict(),
    }
    Path(path).write_text(json.dumps(data, indent=2))
    logger.info("Saved scene file %s", path)
