"""Camera module for primary ray generation.

Components:
    thin_lens: Look-at camera with vertical FOV and depth of field
"""

from .thin_lens import (
    Camera,
    get_camera_basis,
    get_camera_info,
    get_camera_origin,
    get_ray,
    setup_camera,
)

__all__ = [
    "Camera",
    "setup_camera",
    "get_ray",
    "get_camera_origin",
    "get_camera_basis",
    "get_camera_info",
]
