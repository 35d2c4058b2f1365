"""Multiplexed Metropolis Light Transport renderer.

This package renders scenes with Multiplexed Metropolis Light Transport
(MMLT): Markov chains over primary sample space, one per path length, whose
states are bidirectional paths built from a camera subpath and a light
subpath joined by one of several connection strategies.

Subpackages:
    core: Vector math, sampler, path construction, integrator and film
    geometry: Shape primitives and intersection algorithms
    materials: BSDF models and textures
    camera: Pinhole camera
    scene: Lights, objects, scene queries and scene loading
    preview: Tone mapping, display and image export
"""

__version__ = "0.1.0"
