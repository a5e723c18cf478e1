#!/usr/bin/env python3
"""Render one of the preset scenes to a PNG file.

Usage:
    python -m examples.render_demo [options]

Options:
    --scene NAME        Preset scene: showcase, single_sphere, mirror_sphere, glass
                        (default: showcase)
    --width WIDTH       Image width in pixels (default: BEAMTRACER_WIDTH or 640)
    --height HEIGHT     Image height in pixels (default: BEAMTRACER_HEIGHT or 480)
    --max-depth DEPTH   Maximum reflection/refraction depth (default: 5)
    --threads COUNT     CPU worker threads (default: all cores)
    --output OUTPUT     Output file path (default: render.png)
    --no-clamp          Keep HDR values and tone map them on export
    --arch ARCH         Taichi backend (default: BEAMTRACER_ARCH or cpu)
    --quiet             Suppress progress output

Example:
    python -m examples.render_demo --scene glass --width 320 --height 240 --threads 4
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from beamtracer.config import RenderSettings, init_backend
from beamtracer.logging_config import setup_logging
from beamtracer.scene.presets import PRESETS

logger = logging.getLogger("beamtracer.examples.render_demo")


def parse_args(defaults: RenderSettings) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a preset scene with the Whitted ray tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=sorted(PRESETS),
        default="showcase",
        help="Preset scene to render (default: showcase)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=defaults.width,
        help=f"Image width in pixels (default: {defaults.width})",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=defaults.height,
        help=f"Image height in pixels (default: {defaults.height})",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=defaults.max_depth,
        help=f"Maximum reflection/refraction depth (default: {defaults.max_depth})",
    )
    parser.add_argument(
        "--threads",
        type=int,
        default=defaults.thread_count,
        help="CPU worker threads (default: all cores)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="render.png",
        help="Output file path (default: render.png)",
    )
    parser.add_argument(
        "--no-clamp",
        action="store_true",
        help="Keep HDR values and apply Reinhard tone mapping on export",
    )
    parser.add_argument(
        "--arch",
        type=str,
        default=None,
        help="Taichi backend: cpu, gpu, cuda, vulkan, metal",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args()


def render_preset(
    scene_name: str,
    settings: RenderSettings,
    output_path: str = "render.png",
    quiet: bool = False,
) -> Path:
    """Render a preset scene and save it to a PNG file.

    Args:
        scene_name: Key of ``beamtracer.scene.presets.PRESETS``.
        settings: Validated render settings.
        output_path: Output file path (PNG).
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Field-owning modules must be imported after init_backend
    from beamtracer.core.renderer import Renderer

    scene, camera = PRESETS[scene_name]()
    renderer = Renderer(settings)

    for rows, total in renderer.render_progressive(scene, camera):
        if not quiet:
            print(
                f"\r  Progress: {rows}/{total} rows ({100.0 * rows / total:.1f}%)",
                end="",
                flush=True,
            )
    if not quiet:
        print()

    image = renderer.last_image
    low, high = image.min_max()
    logger.info("Pixel range [%.4f, %.4f], %d rays", low, high, image.stats.total_rays)

    tone_map = "none" if settings.clamp else "reinhard"
    path = renderer.save_image(output_path, tone_map=tone_map)
    if not quiet:
        print(f"Saved to: {path.absolute()}")
        print(f"Total time: {image.stats.elapsed_seconds:.2f}s")
    return path


def main() -> int:
    """Main entry point."""
    try:
        defaults = RenderSettings.from_env()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    args = parse_args(defaults)
    setup_logging(level="WARNING" if args.quiet else None)

    settings = RenderSettings(
        width=args.width,
        height=args.height,
        max_depth=args.max_depth,
        thread_count=args.threads,
        tile_rows=defaults.tile_rows,
        clamp=defaults.clamp and not args.no_clamp,
    )

    try:
        settings.validate()
        init_backend(arch=args.arch, thread_count=settings.thread_count)
        render_preset(args.scene, settings, output_path=args.output, quiet=args.quiet)
        return 0
    except Exception as e:
        logger.exception("Render failed")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
