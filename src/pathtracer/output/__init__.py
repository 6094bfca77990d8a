"""Image output.

Components:
    export: PPM and Pillow-backed image writers
"""

from .export import format_ppm, save_image, save_png, save_ppm

__all__ = [
    "format_ppm",
    "save_ppm",
    "save_png",
    "save_image",
]
