"""Geometry module for shape primitives.

This module provides the shapes scene objects and area lights are made of:

Components:
    shape: Hit and sample records, and the Shape interface
    sphere: Sphere primitive with robust ray-sphere intersection
    quad: Parallelogram primitive

Every shape answers the same three questions: where does a ray first hit
it, how large is it, and where is a uniformly sampled point on it.
"""

from .quad import Quad
from .shape import Shape, ShapeHit, ShapeSample
from .sphere import Sphere

__all__ = [
    "Shape",
    "ShapeHit",
    "ShapeSample",
    "Sphere",
    "Quad",
]
