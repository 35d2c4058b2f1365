#!/usr/bin/env python3
"""Render one of the bundled scene files.

Thin wrapper around the command line renderer with defaults sized for a
quick look.

Usage:
    python -m examples.render_scene scenes/scene-2.json out.png [extra mmlt flags]

Example:
    python -m examples.render_scene scenes/scene-1.json scene-1.pfm --seed 7
"""

from __future__ import annotations

import sys

QUICK_DEFAULTS = [
    "--max-path-length",
    "8",
    "--initial-sample-count",
    "10000",
    "--average-samples-per-pixel",
    "4",
    "--tone-map",
    "reinhard",
]


def main(argv: list[str]) -> int:
    """Main entry point."""
    if len(argv) < 2:
        print(__doc__, file=sys.stderr)
        return 2

    from src.mmlt.cli import main as render_main

    scene_path, image_path, *extra = argv
    # Later flags override the quick defaults
    return render_main(["--scene", scene_path, "--image", image_path, *QUICK_DEFAULTS, *extra])


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
