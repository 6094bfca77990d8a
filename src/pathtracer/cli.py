"""Command line interface for rendering scenes.

Usage:
    pathtracer [options]
    python -m pathtracer [options]

Options:
    --scene {basic,showcase,random}  Built-in scene (default: random)
    --scene-file PATH                JSON scene file (overrides --scene)
    --width WIDTH                    Image width in pixels (default: 400)
    --aspect-ratio RATIO             Width / height (default: 16/9, random: 3/2)
    --samples SAMPLES                Samples per pixel (default: 100)
    --max-depth DEPTH                Maximum bounces per path (default: 50)
    --seed SEED                      Random seed (default: 0)
    --rows-per-batch ROWS            Rows per progress update (default: 16)
    --arch {cpu,gpu}                 Taichi backend (default: gpu, falls back to cpu)
    --output OUTPUT                  Output file (default: image.ppm)
    --log-level LEVEL                Log level (default: INFO)
    --log-file PATH                  Also write logs to this file
    --quiet                          Only log warnings and errors

Example:
    pathtracer --scene showcase --width 200 --samples 20 --output showcase.png
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

import taichi as ti

from pathtracer.logging_config import setup_logging

logger = logging.getLogger(__name__)

SCENE_CHOICES = ("basic", "showcase", "random")

# The cover scene is framed for a 3:2 image
_DEFAULT_ASPECT_RATIOS = {"random": 3.0 / 2.0}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="pathtracer",
        description="Render a scene of spheres with a Monte Carlo path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=SCENE_CHOICES,
        default="random",
        help="Built-in scene to render (default: random)",
    )
    parser.add_argument(
        "--scene-file",
        type=str,
        default=None,
        help="JSON scene file; its render settings apply unless overridden",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=None,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=float,
        default=None,
        help="Image width divided by height (default: 16/9, 3/2 for random)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=None,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=None,
        help="Maximum number of bounces per path (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the random streams and random scene (default: 0)",
    )
    parser.add_argument(
        "--rows-per-batch",
        type=int,
        default=16,
        help="Rows rendered between progress updates (default: 16)",
    )
    parser.add_argument(
        "--arch",
        choices=("cpu", "gpu"),
        default="gpu",
        help="Taichi backend; gpu falls back to cpu when unavailable (default: gpu)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="image.ppm",
        help="Output file path; .ppm or any format Pillow writes (default: image.ppm)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
        help="Log level (default: INFO)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write logs to this file",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors",
    )
    return parser


def init_taichi(arch: str) -> None:
    """Initialize Taichi, falling back to the CPU when no GPU is available."""
    if arch == "gpu":
        try:
            ti.init(arch=ti.gpu)
            logger.info("Using GPU backend")
            return
        except Exception as e:
            logger.warning("GPU backend unavailable (%s), falling back to CPU", e)
    ti.init(arch=ti.cpu)
    logger.info("Using CPU backend")


def run(args: argparse.Namespace) -> int:
    """Build the scene, render it and save the image.

    Taichi must already be initialized.

    Returns:
        0 on success, 1 on configuration, capacity or I/O errors.
    """
    # Deferred so Taichi fields are created after ti.init()
    from pathtracer.camera.thin_lens import setup_camera
    from pathtracer.config import RenderSettings, load_scene_file
    from pathtracer.core.renderer import Renderer
    from pathtracer.output.export import save_image
    from pathtracer.scene.manager import SceneManager
    from pathtracer.scene.presets import create_preset

    try:
        if args.scene_file is not None:
            scene = SceneManager()
            camera, settings = load_scene_file(args.scene_file, scene)
        else:
            settings = RenderSettings(
                aspect_ratio=_DEFAULT_ASPECT_RATIOS.get(args.scene, 16.0 / 9.0)
            )
            camera = None

        if args.width is not None:
            settings.image_width = args.width
        if args.aspect_ratio is not None:
            settings.aspect_ratio = args.aspect_ratio
        if args.samples is not None:
            settings.samples_per_pixel = args.samples
        if args.max_depth is not None:
            settings.max_depth = args.max_depth
        if args.seed is not None:
            settings.seed = args.seed
        settings.validate()

        if camera is None:
            scene, camera = create_preset(args.scene, settings.aspect_ratio, settings.seed)
            logger.info(
                "Built %s scene: %d spheres, %d materials",
                args.scene,
                scene.get_sphere_count(),
                scene.get_material_count(),
            )
        else:
            camera.aspect_ratio = settings.aspect_ratio
        camera.validate()
        setup_camera(camera)

        renderer = Renderer.from_settings(settings)
        image = renderer.render(rows_per_batch=args.rows_per_batch)
        save_image(image, args.output)
    except (ValueError, RuntimeError, OSError) as e:
        logger.error("%s", e)
        return 1

    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    level = "WARNING" if args.quiet else args.log_level
    setup_logging(level, log_file=args.log_file)

    init_taichi(args.arch)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
