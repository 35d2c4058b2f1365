"""Command line renderer.

Usage:
    mmlt --scene scenes/scene-1.json --image render.pfm [options]

Options:
    --scene PATH                    Scene file, or "cornell_box" for the built-in box
    --image PATH                    Output image (.pfm for linear floats, else PNG)
    --max-path-length N             Longest path in vertices (default: 20)
    --initial-sample-count N        Bootstrap samples per length (default: 100000)
    --average-samples-per-pixel N   Metropolis iterations per pixel (default: 4096)
    --large-step-probability P      Chance of an independent proposal (default: 0.3)
    --seed N                        Random seed
    --arch {auto,cpu,gpu}           Taichi backend for the film (default: auto)
    --tone-map {none,reinhard,exposure}
    --quiet / --verbose             Logging and progress switches

Example:
    python -m src.mmlt.cli --scene scenes/scene-2.json --image out.png \\
        --average-samples-per-pixel 64 --tone-map reinhard
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

import taichi as ti

from src.mmlt.config import get_logger, setup_logging
from src.mmlt.core.integrator import MmltConfig
from src.mmlt.core.sampler import DEFAULT_LARGE_STEP_PROBABILITY
from src.mmlt.preview.display import TONE_MAP_METHODS

logger = get_logger("cli")

BUILTIN_SCENES = ("cornell_box",)
ARCHITECTURES = ("auto", "cpu", "gpu")


@dataclass
class RenderConfig:
    """Everything a command line render needs.

    Attributes:
        scene_path: Scene file path or the name of a built-in scene.
        image_path: Output path; the extension selects the format.
        integrator: Metropolis integrator settings.
        arch: Taichi backend ("auto" tries the GPU first).
        tone_map: Tone mapping for 8-bit output.
        quiet: Suppress progress output and informational logs.
        verbose: Enable debug logging.
    """

    scene_path: str
    image_path: str
    integrator: MmltConfig
    arch: str = "auto"
    tone_map: str = "none"
    quiet: bool = False
    verbose: bool = False

    @property
    def log_level(self) -> int:
        if self.verbose:
            return logging.DEBUG
        if self.quiet:
            return logging.WARNING
        return logging.INFO


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the renderer."""
    defaults = MmltConfig()
    parser = argparse.ArgumentParser(
        prog="mmlt",
        description="Render a scene with Multiplexed Metropolis Light Transport.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        type=str,
        required=True,
        help='Scene file (JSON) or "cornell_box"',
    )
    parser.add_argument(
        "--image",
        type=str,
        required=True,
        help="Output image path (.pfm or .png)",
    )
    parser.add_argument(
        "--max-path-length",
        type=int,
        default=defaults.max_path_length,
        help=f"Longest path in vertices (default: {defaults.max_path_length})",
    )
    parser.add_argument(
        "--initial-sample-count",
        type=int,
        default=defaults.initial_sample_count,
        help=f"Bootstrap samples per path length (default: {defaults.initial_sample_count})",
    )
    parser.add_argument(
        "--average-samples-per-pixel",
        type=int,
        default=defaults.average_samples_per_pixel,
        help=f"Metropolis iterations per pixel (default: {defaults.average_samples_per_pixel})",
    )
    parser.add_argument(
        "--large-step-probability",
        type=float,
        default=DEFAULT_LARGE_STEP_PROBABILITY,
        help=f"Probability of a large step (default: {DEFAULT_LARGE_STEP_PROBABILITY})",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed (default: fresh entropy)",
    )
    parser.add_argument(
        "--arch",
        choices=ARCHITECTURES,
        default="auto",
        help="Taichi backend (default: auto)",
    )
    parser.add_argument(
        "--tone-map",
        choices=TONE_MAP_METHODS,
        default="none",
        help="Tone mapping for PNG output (default: none)",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--quiet", action="store_true", help="Suppress progress output")
    verbosity.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def parse_render_config(argv: Optional[Sequence[str]] = None) -> RenderConfig:
    """Parse command line arguments into a RenderConfig.

    Raises:
        SystemExit: On unknown flags or missing required flags (argparse).
        ValueError: If the integrator settings are invalid.
    """
    args = build_parser().parse_args(argv)
    integrator = MmltConfig(
        max_path_length=args.max_path_length,
        initial_sample_count=args.initial_sample_count,
        average_samples_per_pixel=args.average_samples_per_pixel,
        large_step_probability=args.large_step_probability,
        seed=args.seed,
    )
    return RenderConfig(
        scene_path=args.scene,
        image_path=args.image,
        integrator=integrator,
        arch=args.arch,
        tone_map=args.tone_map,
        quiet=args.quiet,
        verbose=args.verbose,
    )


def init_taichi(arch: str, seed: Optional[int] = None) -> None:
    """Initialize Taichi on the requested backend."""
    if arch not in ARCHITECTURES:
        raise ValueError(f"Unknown Taichi arch: {arch}")
    kwargs = {} if seed is None else {"random_seed": seed}
    # ti.gpu falls back to the CPU when no GPU backend is available
    ti.init(arch=ti.cpu if arch == "cpu" else ti.gpu, **kwargs)
    logger.debug("Taichi initialized with arch=%s", arch)


def _progress_printer(label: str, quiet: bool):
    start = time.time()

    def callback(current: int, total: int) -> None:
        if quiet:
            return
        elapsed = time.time() - start
        progress_pct = (current / total) * 100 if total > 0 else 0
        rate = current / elapsed if elapsed > 0 else 0
        print(
            f"\r  {label}: {current}/{total} ({progress_pct:.1f}%) - {rate:.0f}/s",
            end="",
            flush=True,
            file=sys.stderr,
        )
        if current == total:
            print(file=sys.stderr)

    return callback


def render(config: RenderConfig):
    """Load the scene, run the integrator and write the image.

    Taichi must already be initialized.

    Returns:
        The rendered Film.
    """
    # Lazy imports keep Taichi kernels out of argument parsing
    from src.mmlt.core.film import Film
    from src.mmlt.core.integrator import MmltIntegrator
    from src.mmlt.preview.export import save_image
    from src.mmlt.scene.cornell_box import create_cornell_box_config
    from src.mmlt.scene.manager import SceneManager, load_scene_config

    if config.scene_path == "cornell_box":
        scene_config = create_cornell_box_config()
    else:
        scene_config = load_scene_config(config.scene_path)
    scene = SceneManager().build(scene_config)

    image = scene_config.image
    film = Film(image.width, image.height, clamp=image.clamp)
    integrator = MmltIntegrator(config.integrator)
    integrator.bootstrap(scene, callback=_progress_printer("Bootstrap", config.quiet))
    integrator.integrate(scene, film, callback=_progress_printer("Metropolis", config.quiet))

    save_image(film, config.image_path, tone_map=config.tone_map)
    return film


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    try:
        config = parse_render_config(argv)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    setup_logging(config.log_level)
    init_taichi(config.arch, config.integrator.seed)

    try:
        render(config)
    except (OSError, ValueError) as e:
        logger.error("Render failed: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
