"""Materials module for BSDF models.

This module implements the scattering models scene objects are built from:

Components:
    bsdf: Base BSDF interface with side-aware sampling densities
    texture: Constant textures feeding material parameters
    lambertian: Ideal diffuse (Lambertian) reflection
    metal: Perfect specular reflection
    dielectric: Glass-like materials with Fresnel reflection and refraction

Each BSDF provides:
    - reflectance(): Evaluate the BSDF for a pair of directions
    - pdf(): Density of a sampled direction, for the camera or the light side
    - sample_direction(): Importance sample the next direction of a subpath

Specular BSDFs report no density and expose the Dirac weight of a
sampled direction pair instead.
"""

from .bsdf import Bsdf, Material
from .dielectric import DielectricMaterial, SpecularDielectricBsdf
from .lambertian import LambertianBsdf, MatteMaterial
from .metal import MirrorMaterial, SpecularReflectionBsdf
from .texture import ConstantTexture, Texture

__all__ = [
    "Bsdf",
    "Material",
    "Texture",
    "ConstantTexture",
    "LambertianBsdf",
    "MatteMaterial",
    "SpecularReflectionBsdf",
    "MirrorMaterial",
    "SpecularDielectricBsdf",
    "DielectricMaterial",
]
