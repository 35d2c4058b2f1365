#!/usr/bin/env python3
"""Render the Cornell box scene with Multiplexed Metropolis Light Transport.

This script builds the built-in Cornell box, estimates the per-length
normalization, runs the Metropolis chains and saves the image.

Usage:
    python -m examples.render_cornell_box [options]

Options:
    --width WIDTH               Image width in pixels (default: 128)
    --height HEIGHT             Image height in pixels (default: 128)
    --samples SAMPLES           Average Metropolis samples per pixel (default: 16)
    --initial-samples COUNT     Bootstrap samples per path length (default: 20000)
    --max-path-length LENGTH    Longest path in vertices (default: 8)
    --output OUTPUT             Output file path (default: cornell_box.png)
    --seed SEED                 Random seed (default: none)
    --quiet                     Suppress progress output

Example:
    python -m examples.render_cornell_box --width 64 --height 64 --samples 8
"""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import Optional

import taichi as ti


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render the Cornell box scene with MMLT.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--width", type=int, default=128, help="Image width in pixels (default: 128)")
    parser.add_argument("--height", type=int, default=128, help="Image height in pixels (default: 128)")
    parser.add_argument(
        "--samples",
        type=int,
        default=16,
        help="Average Metropolis samples per pixel (default: 16)",
    )
    parser.add_argument(
        "--initial-samples",
        type=int,
        default=20_000,
        help="Bootstrap samples per path length (default: 20000)",
    )
    parser.add_argument(
        "--max-path-length",
        type=int,
        default=8,
        help="Longest path in vertices (default: 8)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="cornell_box.png",
        help="Output file path, .png or .pfm (default: cornell_box.png)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed (default: none)")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser.parse_args()


def render_cornell_box(
    width: int = 128,
    height: int = 128,
    samples_per_pixel: int = 16,
    initial_samples: int = 20_000,
    max_path_length: int = 8,
    output_path: str = "cornell_box.png",
    seed: Optional[int] = None,
    quiet: bool = False,
) -> Path:
    """Render the Cornell box and save it.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Average Metropolis samples per pixel.
        initial_samples: Bootstrap samples per path length.
        max_path_length: Longest path in vertices.
        output_path: Output file path (PNG or PFM).
        seed: Optional random seed.
        quiet: If True, suppress progress output.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.mmlt.core.film import Film
    from src.mmlt.core.integrator import MmltConfig, MmltIntegrator
    from src.mmlt.preview.export import save_image
    from src.mmlt.scene.cornell_box import create_cornell_box_config
    from src.mmlt.scene.manager import SceneManager

    if not quiet:
        print(f"Creating Cornell box scene ({width}x{height})...")
    config = create_cornell_box_config(width=width, height=height)
    scene = SceneManager().build(config)

    integrator = MmltIntegrator(
        MmltConfig(
            max_path_length=max_path_length,
            initial_sample_count=initial_samples,
            average_samples_per_pixel=samples_per_pixel,
            seed=seed,
        )
    )
    film = Film(width, height)

    start_time = time.time()

    def progress_callback(current: int, total: int) -> None:
        if not quiet:
            elapsed = time.time() - start_time
            progress_pct = (current / total) * 100 if total > 0 else 0
            rate = current / elapsed if elapsed > 0 else 0
            print(
                f"\r  Progress: {current}/{total} ({progress_pct:.1f}%) - {rate:.0f} paths/s",
                end="",
                flush=True,
            )

    if not quiet:
        print(f"Bootstrapping {initial_samples} samples per path length...")
    integrator.bootstrap(scene, callback=progress_callback)
    if not quiet:
        print()
        print(f"Running {samples_per_pixel} Metropolis samples per pixel...")
    integrator.integrate(scene, film, callback=progress_callback)
    if not quiet:
        print()  # Newline after progress

    output_file = Path(output_path)
    save_image(film, str(output_file), tone_map="reinhard", gamma=2.2)

    total_time = time.time() - start_time
    if not quiet:
        print(f"Acceptance rate: {integrator.acceptance_rate:.3f}")
        print(f"Saved to: {output_file.absolute()}")
        print(f"Total time: {total_time:.2f}s")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    # ti.gpu falls back to the CPU when no GPU backend is available
    ti.init(arch=ti.gpu)

    try:
        render_cornell_box(
            width=args.width,
            height=args.height,
            samples_per_pixel=args.samples,
            initial_samples=args.initial_samples,
            max_path_length=args.max_path_length,
            output_path=args.output,
            seed=args.seed,
            quiet=args.quiet,
        )
        return 0
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
