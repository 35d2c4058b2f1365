"""Ray data structure and vector utilities for bidirectional path construction.

This module provides the Ray dataclass and the vector helpers used by the
path builder, shapes and BSDFs. Paths are assembled one vertex at a time on
the host, so vectors are plain float64 NumPy arrays of shape (3,).

Besides the usual vector algebra, it contains the two measure conversions
that bidirectional path sampling relies on:
- geometry_term: couples two surface points through a shared segment
- direction_to_area: converts a solid angle density into an area density

Example:
    >>> from src.mmlt.core.ray import Ray, vec3, normalize
    >>> ray = Ray(origin=vec3(0.0, 0.0, 0.0), direction=normalize(vec3(0.0, 0.0, -1.0)))
    >>> point = ray.at(5.0)  # Point 5 units along the ray
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

Vector = npt.NDArray[np.float64]

# Minimum ray parameter accepted as a hit; avoids self-intersection
T_MIN = 1e-6

# Distance a spawned ray origin is pushed off its surface
RAY_EPSILON = 1e-4


def vec3(x: float, y: float, z: float) -> Vector:
    """Create a 3D vector.

    Args:
        x: X component.
        y: Y component.
        z: Z component.

    Returns:
        A float64 array of shape (3,).
    """
    return np.array([x, y, z], dtype=np.float64)


def as_vector(value) -> Vector:
    """Convert a sequence of three numbers into a vector."""
    vector = np.asarray(value, dtype=np.float64)
    if vector.shape != (3,):
        raise ValueError(f"Expected a 3-component vector, got shape {vector.shape}")
    return vector


@dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray.
        direction: The direction vector of the ray. Should be normalized
            for most operations, but this is not enforced.
    """

    origin: Vector
    direction: Vector

    def at(self, t: float) -> Vector:
        """Compute the point along the ray at parameter t.

        Args:
            t: The parameter value. Positive values are in front of the origin.

        Returns:
            The point origin + t * direction.
        """
        return self.origin + t * self.direction


# =============================================================================
# Vector Utility Functions
# =============================================================================


def dot(a: Vector, b: Vector) -> float:
    """Compute the dot product of two vectors."""
    return float(a[0] * b[0] + a[1] * b[1] + a[2] * b[2])


def cross(a: Vector, b: Vector) -> Vector:
    """Compute the cross product of two vectors."""
    return np.array(
        [
            a[1] * b[2] - a[2] * b[1],
            a[2] * b[0] - a[0] * b[2],
            a[0] * b[1] - a[1] * b[0],
        ],
        dtype=np.float64,
    )


def length_squared(v: Vector) -> float:
    """Compute the squared length of a vector."""
    return dot(v, v)


def length(v: Vector) -> float:
    """Compute the Euclidean length of a vector."""
    return math.sqrt(dot(v, v))


def normalize(v: Vector) -> Vector:
    """Normalize a vector to unit length.

    Args:
        v: The input vector.

    Returns:
        A unit vector in the same direction as v.

    Raises:
        ValueError: If v has zero length.
    """
    norm = length(v)
    if norm == 0.0:
        raise ValueError("Cannot normalize a zero-length vector")
    return v / norm


def same_hemisphere(a: Vector, b: Vector, normal: Vector) -> bool:
    """Check whether two directions lie on the same side of a surface."""
    return dot(a, normal) * dot(b, normal) > 0.0


# =============================================================================
# Reflection and Refraction
# =============================================================================


def reflect(v: Vector, n: Vector) -> Vector:
    """Reflect an incoming vector about a normal.

    Args:
        v: The incoming direction (pointing toward the surface).
        n: The surface normal (unit length).

    Returns:
        The reflected direction v - 2 * dot(v, n) * n.
    """
    return v - 2.0 * dot(v, n) * n


def refract(uv: Vector, n: Vector, etai_over_etat: float) -> Vector:
    """Refract a unit vector through a surface using Snell's law.

    Args:
        uv: The incoming unit direction (pointing toward the surface).
        n: The surface normal on the incident side.
        etai_over_etat: Ratio of refractive indices (incident / transmitted).

    Returns:
        The refracted unit direction. Callers must check for total internal
        reflection first (see fresnel_dielectric).
    """
    cos_theta = min(-dot(uv, n), 1.0)
    r_out_perp = etai_over_etat * (uv + cos_theta * n)
    r_out_parallel = -math.sqrt(abs(1.0 - length_squared(r_out_perp))) * n
    return r_out_perp + r_out_parallel


def fresnel_dielectric(cos_theta_i: float, eta_i: float, eta_t: float) -> float:
    """Compute the unpolarized Fresnel reflectance of a dielectric interface.

    Args:
        cos_theta_i: Cosine of the incident angle (non-negative).
        eta_i: Refractive index on the incident side.
        eta_t: Refractive index on the transmitted side.

    Returns:
        The fraction of light reflected, in [0, 1]. Returns 1 on total
        internal reflection.
    """
    cos_theta_i = min(max(cos_theta_i, 0.0), 1.0)
    sin_theta_i = math.sqrt(max(0.0, 1.0 - cos_theta_i * cos_theta_i))
    sin_theta_t = eta_i / eta_t * sin_theta_i
    if sin_theta_t >= 1.0:
        return 1.0
    cos_theta_t = math.sqrt(max(0.0, 1.0 - sin_theta_t * sin_theta_t))
    r_parallel = (eta_t * cos_theta_i - eta_i * cos_theta_t) / (
        eta_t * cos_theta_i + eta_i * cos_theta_t
    )
    r_perpendicular = (eta_i * cos_theta_i - eta_t * cos_theta_t) / (
        eta_i * cos_theta_i + eta_t * cos_theta_t
    )
    return 0.5 * (r_parallel * r_parallel + r_perpendicular * r_perpendicular)


# =============================================================================
# Sampling Helpers
# =============================================================================


def build_onb_from_normal(normal: Vector) -> tuple[Vector, Vector, Vector]:
    """Build an orthonormal basis with the normal as the third axis.

    Uses the branchless construction of Duff et al. (2017).

    Args:
        normal: The unit normal.

    Returns:
        A tuple (tangent, bitangent, normal).
    """
    sign = math.copysign(1.0, normal[2])
    a = -1.0 / (sign + normal[2])
    b = normal[0] * normal[1] * a
    tangent = vec3(1.0 + sign * normal[0] * normal[0] * a, sign * b, -sign * normal[0])
    bitangent = vec3(b, sign + normal[1] * normal[1] * a, -normal[1])
    return tangent, bitangent, normal


def local_to_world(local: Vector, normal: Vector) -> Vector:
    """Transform a direction from the normal-aligned frame to world space."""
    tangent, bitangent, n = build_onb_from_normal(normal)
    return local[0] * tangent + local[1] * bitangent + local[2] * n


def sample_cosine_hemisphere(normal: Vector, u1: float, u2: float) -> Vector:
    """Sample a cosine-weighted direction around a normal.

    The density of the returned direction w is dot(w, normal) / pi.

    Args:
        normal: The hemisphere axis (unit length).
        u1: First uniform number in [0, 1).
        u2: Second uniform number in [0, 1).

    Returns:
        A unit direction in the hemisphere of the normal.
    """
    phi = 2.0 * math.pi * u1
    r = math.sqrt(u2)
    z = math.sqrt(max(0.0, 1.0 - u2))
    local = vec3(r * math.cos(phi), r * math.sin(phi), z)
    return normalize(local_to_world(local, normal))


def sample_uniform_sphere(u1: float, u2: float) -> Vector:
    """Sample a direction uniformly on the unit sphere."""
    z = 1.0 - 2.0 * u1
    r = math.sqrt(max(0.0, 1.0 - z * z))
    phi = 2.0 * math.pi * u2
    return vec3(r * math.cos(phi), r * math.sin(phi), z)


def offset_ray_origin(point: Vector, normal: Vector, direction: Vector) -> Vector:
    """Push a ray origin off a surface on the side the ray leaves toward.

    Args:
        point: The surface point.
        normal: The surface normal.
        direction: The direction of the spawned ray.

    Returns:
        The offset origin.
    """
    if dot(direction, normal) < 0.0:
        return point - RAY_EPSILON * normal
    return point + RAY_EPSILON * normal


# =============================================================================
# Measure Conversions
# =============================================================================


def geometry_term(d: Vector, n1: Vector, n2: Vector) -> float:
    """Compute the geometric coupling between two surface points.

    G = |dot(n1, d) * dot(n2, d)| / |d|^4, where d is the unnormalized
    segment between the points. The value is symmetric in the two endpoints.

    Args:
        d: Segment from one point to the other.
        n1: Normal at the first point.
        n2: Normal at the second point.

    Returns:
        The geometry term (zero for a degenerate segment).
    """
    distance_squared = length_squared(d)
    if distance_squared == 0.0:
        return 0.0
    return abs(dot(n1, d) * dot(n2, d)) / (distance_squared * distance_squared)


def direction_to_area(d: Vector, n: Vector) -> float:
    """Convert a solid angle density into an area density at the far end of d.

    Returns |dot(n, d)| / |d|^3, where n is the normal at the receiving point.
    """
    distance_squared = length_squared(d)
    if distance_squared == 0.0:
        return 0.0
    return abs(dot(n, d)) / (distance_squared * math.sqrt(distance_squared))
