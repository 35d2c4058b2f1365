"""Core rendering module.

This module contains the building blocks of the Metropolis renderer:

Components:
    ray: Ray data structure, vector utilities and measure conversions
    spectrum: RGB spectrum helpers and luminance
    sampler: Replayable primary sample space sampler with rollback
    distribution: Discrete distribution over path lengths
    interaction: Camera, light and object interaction records
    path: Technique selection, subpath tracing, connection and MIS weights
    film: Taichi image accumulator with atomic splatting
    integrator: Bootstrap, per-length Markov chains and deposits

Path construction runs on the host, one chain step at a time; the film
accumulates deposits on the Taichi backend.
"""

from .distribution import DiscreteDistribution
from .interaction import (
    CameraInteraction,
    Geometry,
    Interaction,
    LightInteraction,
    ObjectInteraction,
    PathSide,
)
from .ray import (
    Ray,
    cross,
    direction_to_area,
    dot,
    geometry_term,
    length,
    normalize,
    reflect,
    refract,
    vec3,
)
from .sampler import MmltSampler, MutationType, Sample, Sampler
from .spectrum import LUMINANCE_WEIGHTS, black, fill, is_black, is_finite, luminance

# Note: path, film and integrator are NOT imported here to avoid circular imports
# and to keep Taichi out of plain geometry imports.
# Import directly from src.mmlt.core.path, src.mmlt.core.film or src.mmlt.core.integrator.

__all__ = [
    "Ray",
    "vec3",
    "dot",
    "cross",
    "length",
    "normalize",
    "reflect",
    "refract",
    "geometry_term",
    "direction_to_area",
    "LUMINANCE_WEIGHTS",
    "black",
    "fill",
    "luminance",
    "is_black",
    "is_finite",
    "Sampler",
    "Sample",
    "MmltSampler",
    "MutationType",
    "DiscreteDistribution",
    "Geometry",
    "PathSide",
    "Interaction",
    "CameraInteraction",
    "LightInteraction",
    "ObjectInteraction",
]
