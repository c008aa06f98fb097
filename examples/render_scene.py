#!/usr/bin/env python3
"""Render a preset scene or a JSON scene file.

This script renders one of the built-in scenes (or a scene file) with the
path tracer, accumulating samples progressively and writing the result as a
PPM or any image format Pillow understands.

Usage:
    python -m examples.render_scene [options]

Options:
    --scene NAME        Preset scene: showcase, random, benchmark (default: showcase;
                        benchmark is a timing scene and renders black)
    --scene-file PATH   JSON scene file (overrides --scene)
    --width WIDTH       Image width in pixels (default: 400)
    --height HEIGHT     Image height in pixels (default: 225)
    --samples SAMPLES   Number of samples per pixel (default: 100)
    --max-depth DEPTH   Maximum bounces per path (default: 50)
    --gamma GAMMA       Output gamma (default: 2.0)
    --seed SEED         Render seed (default: 0)
    --output OUTPUT     Output file path (default: image.ppm)
    --batch-size SIZE   Samples per progress update (default: 10)
    --arch ARCH         Taichi backend: gpu, cpu (default: gpu, falls back to cpu)
    --preview           Show the result in a Matplotlib window
    --test-pattern      Write a gradient test image instead of rendering
    --quiet             Suppress progress output
    --verbose           Enable debug logging

Example:
    python -m examples.render_scene --scene random --width 600 --height 400 --samples 50
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_scene")

PRESET_NAMES = ("showcase", "random", "benchmark")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Size, sampling and seed flags default to None so that values from a
    scene file are kept unless overridden on the command line.
    """
    parser = argparse.ArgumentParser(
        description="Render a scene with the Taichi path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=PRESET_NAMES,
        default="showcase",
        help="Preset scene to render (default: showcase)",
    )
    parser.add_argument(
        "--scene-file",
        type=str,
        default=None,
        help="JSON scene file to render (overrides --scene)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=None,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=None,
        help="Image height in pixels (default: 225)",
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
        help="Maximum bounces per path (default: 50)",
    )
    parser.add_argument(
        "--gamma",
        type=float,
        default=None,
        help="Output gamma (default: 2.0)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Render seed (default: 0)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="image.ppm",
        help="Output file path; .ppm or any Pillow format (default: image.ppm)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--arch",
        choices=("gpu", "cpu"),
        default="gpu",
        help="Taichi backend (default: gpu, falls back to cpu)",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Show the result in a Matplotlib window",
    )
    parser.add_argument(
        "--test-pattern",
        action="store_true",
        help="Write a gradient test image instead of rendering",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def configure_logging(quiet: bool = False, verbose: bool = False) -> None:
    """Set up root logging for the command line."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def init_taichi(arch: str = "gpu", quiet: bool = False) -> None:
    """Initialize Taichi, falling back to the CPU if no GPU backend works."""
    if arch == "cpu":
        ti.init(arch=ti.cpu)
        if not quiet:
            print("Using CPU backend")
        return

    try:
        ti.init(arch=ti.gpu)
        if not quiet:
            print("Using GPU backend")
    except Exception:
        ti.init(arch=ti.cpu)
        if not quiet:
            print("Using CPU backend")


def write_test_pattern(width: int, height: int, output_path: str, quiet: bool = False) -> Path:
    """Write the gradient test image without rendering anything."""
    from pathtracer.preview.export import gradient_test_pattern, save_image_array

    output_file = Path(output_path)
    save_image_array(gradient_test_pattern(width, height), output_file, gamma=1.0)
    if not quiet:
        print(f"Saved test pattern to: {output_file.absolute()}")
    return output_file


def render_scene(args: argparse.Namespace) -> Path:
    """Build the requested scene, render it and save the result.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from pathtracer.camera.thin_lens import setup_camera
    from pathtracer.core.progressive import ProgressiveRenderer
    from pathtracer.core.settings import RenderSettings
    from pathtracer.preview.display import show_preview
    from pathtracer.scene.loader import load_scene_file
    from pathtracer.scene.presets import create_scene

    overrides = {
        "width": args.width,
        "height": args.height,
        "samples_per_pixel": args.samples,
        "max_depth": args.max_depth,
        "gamma": args.gamma,
        "seed": args.seed,
    }

    if args.scene_file is not None:
        loaded = load_scene_file(args.scene_file)
        settings = loaded.settings.replace(**overrides)
        camera = loaded.camera
        scene_name = Path(args.scene_file).name
        if args.width is not None or args.height is not None:
            camera.aspect_ratio = settings.aspect_ratio
    else:
        settings = RenderSettings().replace(**overrides)
        scene_name = args.scene
        _, camera = create_scene(args.scene, aspect_ratio=settings.aspect_ratio)

    if not args.quiet:
        print(f"Creating {scene_name} scene ({settings.width}x{settings.height})...")

    setup_camera(camera)

    renderer = ProgressiveRenderer.from_settings(settings)

    if not args.quiet:
        print(f"Rendering {settings.samples_per_pixel} samples per pixel...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        if not args.quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / target) * 100 if target > 0 else 0
            samples_per_sec = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{target} samples "
                f"({progress_pct:.1f}%) - {samples_per_sec:.1f} spp/s",
                end="",
                flush=True,
            )

    renderer.render(
        num_samples=settings.samples_per_pixel,
        batch_size=args.batch_size,
        callback=progress_callback,
    )

    if not args.quiet:
        print()  # Newline after progress

    output_file = Path(args.output)
    renderer.save_image(output_file, gamma=settings.gamma)

    total_time = time.time() - start_time
    if not args.quiet:
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    if args.preview:
        show_preview(renderer, gamma=settings.gamma)

    return output_file


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(quiet=args.quiet, verbose=args.verbose)

    try:
        if args.test_pattern:
            write_test_pattern(
                args.width if args.width is not None else 256,
                args.height if args.height is not None else 256,
                args.output,
                quiet=args.quiet,
            )
            return 0

        init_taichi(args.arch, quiet=args.quiet)
        render_scene(args)
        return 0
    except (OSError, ValueError, RuntimeError) as e:
        logger.debug("Render failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
