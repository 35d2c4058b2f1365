"""Bidirectional path construction and contribution estimation.

A path of length k has k vertices x_0 ... x_{k-1}, with x_0 on the camera
and x_{k-1} on a light. A Technique (camera_count, light_count) says how
many of them were generated by tracing from the camera and how many by
tracing from a light; the two halves meet at a connection:

    (0, k)      trace k vertices from a light, the last must be the camera
    (k, 0)      trace k vertices from the camera, the last must be a light
    (1, 1)      sample both endpoints and connect them
    (1, k)      trace from a light, connect the last vertex to the camera
    (k, 1)      trace from the camera, connect the last vertex to a light point
    (s, t)      trace both halves and connect their last vertices

Every vertex stores its area density as generated from the camera side
(forward) and from the light side (reverse). The connection pass computes
both in a single walk: the forward density of x_{i+1} is known at x_i, and
the reverse density of x_{i-1} is back-patched from x_i. Densities through
Dirac distributions are None.

The random numbers come from three interleaved streams so that changing
one half of the path does not shift the numbers read by the other:

    STREAM_TECHNIQUE  technique choice
    STREAM_LIGHT      light choice, light point and direction, light subpath
    STREAM_CAMERA     raster position, camera subpath

Example:
    >>> from src.mmlt.core.path import STREAM_COUNT, contribute
    >>> from src.mmlt.core.sampler import MmltSampler
    >>> sampler = MmltSampler(STREAM_COUNT)
    >>> contribution = contribute(scene, sampler, path_length=3)
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from src.mmlt.core.interaction import (
    CameraInteraction,
    Interaction,
    LightInteraction,
    ObjectInteraction,
    PathSide,
)
from src.mmlt.core.ray import (
    Ray,
    Vector,
    direction_to_area,
    geometry_term,
    length,
    normalize,
    offset_ray_origin,
)
from src.mmlt.core.sampler import Sampler
from src.mmlt.core.spectrum import Spectrum, black, is_black, is_finite, luminance

if TYPE_CHECKING:
    from src.mmlt.scene.scene import Scene

STREAM_TECHNIQUE = 0
STREAM_LIGHT = 1
STREAM_CAMERA = 2
STREAM_COUNT = 3

# Shortest path handled: camera and light with nothing in between
MIN_PATH_LENGTH = 2

# A connection ray resolves to its target when it hits the same entity within
# this distance of the target point, relative to the segment length
CONNECTION_TOLERANCE = 1e-3


# =============================================================================
# Techniques and contributions
# =============================================================================


@dataclass(frozen=True)
class Technique:
    """Split of a path into camera-traced and light-traced vertices.

    Attributes:
        camera_count: Vertices generated from the camera side.
        light_count: Vertices generated from the light side.
    """

    camera_count: int
    light_count: int

    @property
    def path_length(self) -> int:
        return self.camera_count + self.light_count

    @classmethod
    def sample(cls, path_length: int, sampler: Sampler) -> Technique:
        """Choose camera_count uniformly in [0, path_length].

        Reads one number from the technique stream.
        """
        sampler.start_stream(STREAM_TECHNIQUE)
        camera_count = min(int(sampler.sample() * (path_length + 1)), path_length)
        return cls(camera_count=camera_count, light_count=path_length - camera_count)

    def is_camera_side(self, index: int) -> bool:
        """Whether vertex index was generated from the camera side."""
        return index < self.camera_count


@dataclass(frozen=True, eq=False)
class Contribution:
    """What a path adds to the image.

    Attributes:
        scalar: Luminance of the value; the Metropolis target function.
        spectrum: RGB value to deposit.
        pixel: Integer pixel (x, y) the value lands on.
    """

    scalar: float
    spectrum: Spectrum = field(default_factory=black)
    pixel: tuple[int, int] = (0, 0)

    @classmethod
    def empty(cls) -> Contribution:
        """The contribution of a failed or degenerate path."""
        return cls(scalar=0.0)

    @property
    def is_empty(self) -> bool:
        return self.scalar == 0.0


def acceptance(current: Contribution, proposal: Contribution) -> float:
    """Metropolis acceptance probability of moving from current to proposal.

    Returns:
        clamp(proposal / current, 0, 1), or 1 when current is empty.
    """
    if current.scalar <= 0.0:
        return 1.0
    return min(max(proposal.scalar / current.scalar, 0.0), 1.0)


# =============================================================================
# Vertices and paths
# =============================================================================


@dataclass
class Vertex:
    """One interaction of a connected path with its bookkeeping.

    Attributes:
        interaction: The camera, light or object interaction.
        throughput: Factor this vertex contributes to the path throughput.
        forward_pdf: Area density of the vertex as generated from the camera
            side, None when generated through a Dirac distribution.
        reverse_pdf: Area density of the vertex as generated from the light
            side, None when generated through a Dirac distribution.
        delta: Whether the vertex itself is a Dirac distribution (specular
            BSDF, pinhole position) that no connection can reach.
    """

    interaction: Interaction
    throughput: Spectrum = field(default_factory=black)
    forward_pdf: Optional[float] = None
    reverse_pdf: Optional[float] = None
    delta: bool = False


def _remap(density: Optional[float]) -> float:
    return 1.0 if density is None else density


@dataclass
class Path:
    """A connected path ready to be evaluated.

    Attributes:
        vertices: Vertices ordered from the camera to the light.
        technique: Technique the path was generated with.
        pixel: Pixel the path contributes to.
    """

    vertices: list[Vertex]
    technique: Technique
    pixel: tuple[int, int]

    def __len__(self) -> int:
        return len(self.vertices)

    def pdf(self) -> float:
        """Density with which the technique generated the path.

        Camera-side vertices use their forward density and light-side
        vertices their reverse density. Dirac densities count as 1.
        """
        density = 1.0
        for index, vertex in enumerate(self.vertices):
            if self.technique.is_camera_side(index):
                density *= _remap(vertex.forward_pdf)
            else:
                density *= _remap(vertex.reverse_pdf)
        return density

    def throughput(self) -> Spectrum:
        """Component-wise product of every vertex throughput."""
        result = self.vertices[0].throughput.copy()
        for vertex in self.vertices[1:]:
            result = result * vertex.throughput
        return result

    def weight(self) -> float:
        """Balance heuristic weight of the technique among all that could
        have produced this path.

        Each alternate technique moves the connection by one vertex at a
        time. Its density relative to the current one is a running product
        of reverse/forward ratios toward the camera and forward/reverse
        ratios toward the light. A vertex contributes no term when it is
        itself Dirac, or when the density through which the current side
        reached it is undefined (its predecessor on that side is Dirac, so
        no connection could end there).
        """
        camera_count = self.technique.camera_count
        total = 0.0

        ratio = 1.0
        for index in range(camera_count - 1, -1, -1):
            vertex = self.vertices[index]
            ratio *= _remap(vertex.reverse_pdf) / _remap(vertex.forward_pdf)
            if vertex.forward_pdf is not None and not vertex.delta:
                total += ratio

        ratio = 1.0
        for index in range(camera_count, len(self.vertices)):
            vertex = self.vertices[index]
            ratio *= _remap(vertex.forward_pdf) / _remap(vertex.reverse_pdf)
            if vertex.reverse_pdf is not None and not vertex.delta:
                total += ratio

        return 1.0 / (1.0 + total)

    def contribution(self) -> Contribution:
        """Reduce the path to (luminance, RGB, pixel).

        Returns:
            The empty contribution when the density is zero, the throughput
            is black, the weight is zero or the value is not finite.
        """
        density = self.pdf()
        if density == 0.0 or not math.isfinite(density):
            return Contribution.empty()

        throughput = self.throughput()
        if is_black(throughput):
            return Contribution.empty()

        mis_weight = self.weight()
        if mis_weight == 0.0:
            return Contribution.empty()

        value = throughput * (mis_weight / density)
        if not is_finite(value):
            return Contribution.empty()

        scalar = luminance(value)
        if not scalar > 0.0 or not math.isfinite(scalar):
            return Contribution.empty()
        return Contribution(scalar=scalar, spectrum=value, pixel=self.pixel)


# =============================================================================
# Subpath tracing
# =============================================================================


def _sample_camera(scene: Scene, sampler: Sampler) -> CameraInteraction:
    sampler.start_stream(STREAM_CAMERA)
    return scene.camera.sample_interaction(sampler)


def _sample_light(scene: Scene, sampler: Sampler) -> LightInteraction:
    sampler.start_stream(STREAM_LIGHT)
    light = scene.sample_light(sampler)
    return light.sample_interaction(sampler)


def _trace(
    scene: Scene,
    sampler: Sampler,
    seed: Interaction,
    side: PathSide,
    count: int,
) -> list[Interaction]:
    """Trace a subpath of up to count interactions, seed included.

    Stops early when a ray escapes, a BSDF fails to sample or a non-scattering
    interaction (camera or light) is reached.
    """
    interactions = [seed]
    ray = seed.generate_ray(side, sampler)
    while ray is not None and len(interactions) < count:
        hit = scene.intersect(ray)
        if hit is None:
            break
        interactions.append(hit)
        if len(interactions) == count or not isinstance(hit, ObjectInteraction):
            break
        ray = hit.generate_ray(side, sampler)
    return interactions


def _connection_ray(source: Interaction, target: Vector) -> Optional[tuple[Ray, float]]:
    point = source.geometry.point
    if length(target - point) == 0.0:
        return None
    # Aim from the offset origin so the ray still passes through target
    origin = offset_ray_origin(point, source.geometry.normal, target - point)
    offset = target - origin
    distance = length(offset)
    if distance == 0.0:
        return None
    return Ray(origin=origin, direction=offset / distance), distance


def _resolve(scene: Scene, source: Interaction, target: Interaction) -> Optional[Interaction]:
    """Cast a visibility ray from source toward target.

    Returns:
        The interaction the ray hits, if it is the target entity at the
        target point; None otherwise.
    """
    connection = _connection_ray(source, target.geometry.point)
    if connection is None:
        return None
    ray, distance = connection

    hit = scene.intersect(ray)
    if hit is None or type(hit) is not type(target) or hit.id != target.id:
        return None
    if isinstance(hit, CameraInteraction):
        return hit
    if length(hit.geometry.point - target.geometry.point) > CONNECTION_TOLERANCE * max(1.0, distance):
        return None
    return hit


def _light_tracing(scene: Scene, sampler: Sampler, light_count: int) -> Optional[list[Interaction]]:
    light_path = _trace(scene, sampler, _sample_light(scene, sampler), PathSide.LIGHT, light_count)
    if len(light_path) != light_count or not isinstance(light_path[-1], CameraInteraction):
        return None
    return light_path[::-1]


def _camera_tracing(scene: Scene, sampler: Sampler, camera_count: int) -> Optional[list[Interaction]]:
    camera_path = _trace(scene, sampler, _sample_camera(scene, sampler), PathSide.CAMERA, camera_count)
    if len(camera_path) != camera_count or not isinstance(camera_path[-1], LightInteraction):
        return None
    return camera_path


def _direct_connection(scene: Scene, sampler: Sampler) -> Optional[list[Interaction]]:
    camera = _sample_camera(scene, sampler)
    light = _sample_light(scene, sampler)
    hit = _resolve(scene, light, camera)
    if hit is None:
        return None
    return [hit, light]


def _connect_to_camera(scene: Scene, sampler: Sampler, light_count: int) -> Optional[list[Interaction]]:
    camera = _sample_camera(scene, sampler)
    light_path = _trace(scene, sampler, _sample_light(scene, sampler), PathSide.LIGHT, light_count)
    if len(light_path) != light_count or not isinstance(light_path[-1], ObjectInteraction):
        return None
    hit = _resolve(scene, light_path[-1], camera)
    if hit is None:
        return None
    return [hit, *light_path[::-1]]


def _connect_to_light(scene: Scene, sampler: Sampler, camera_count: int) -> Optional[list[Interaction]]:
    camera_path = _trace(scene, sampler, _sample_camera(scene, sampler), PathSide.CAMERA, camera_count)
    if len(camera_path) != camera_count or not isinstance(camera_path[-1], ObjectInteraction):
        return None
    light = _sample_light(scene, sampler)
    hit = _resolve(scene, camera_path[-1], light)
    if hit is None:
        return None
    return [*camera_path, hit]


def _connect_subpaths(
    scene: Scene, sampler: Sampler, camera_count: int, light_count: int
) -> Optional[list[Interaction]]:
    camera_path = _trace(scene, sampler, _sample_camera(scene, sampler), PathSide.CAMERA, camera_count)
    if len(camera_path) != camera_count or not isinstance(camera_path[-1], ObjectInteraction):
        return None
    light_path = _trace(scene, sampler, _sample_light(scene, sampler), PathSide.LIGHT, light_count)
    if len(light_path) != light_count or not isinstance(light_path[-1], ObjectInteraction):
        return None
    if _resolve(scene, camera_path[-1], light_path[-1]) is None:
        return None
    return [*camera_path, *light_path[::-1]]


# =============================================================================
# Connection
# =============================================================================


def _is_specular(interaction: Interaction) -> bool:
    return isinstance(interaction, ObjectInteraction) and interaction.bsdf.specular


def connect(interactions: list[Interaction], technique: Technique) -> Optional[list[Vertex]]:
    """Turn an ordered interaction sequence into vertices.

    Walks the sequence once. At x_i it evaluates the vertex throughput, the
    forward density of x_{i+1} (lookahead) and the reverse density of x_{i-1}
    (back-patch). The geometry term of segment (x_i, x_{i+1}) is folded into
    the throughput of x_i, except when the segment was sampled through a
    specular vertex: there the Dirac weight already accounts for it and the
    matching density is None.

    Args:
        interactions: Interactions ordered from the camera to the light.
        technique: Technique that produced them.

    Returns:
        The vertices, or None if the endpoints are not a camera and a light
        or an interior interaction does not scatter.
    """
    count = len(interactions)
    if count < MIN_PATH_LENGTH:
        return None
    if not isinstance(interactions[0], CameraInteraction):
        return None
    if not isinstance(interactions[-1], LightInteraction):
        return None
    if not all(isinstance(x, ObjectInteraction) for x in interactions[1:-1]):
        return None

    camera = interactions[0].camera
    light = interactions[-1].light
    camera_count = technique.camera_count
    specular = [_is_specular(x) for x in interactions]

    vertices = [
        Vertex(
            interaction=x,
            delta=specular[i] or (i == 0 and camera.positional_pdf(x.geometry.point) is None),
        )
        for i, x in enumerate(interactions)
    ]
    vertices[0].forward_pdf = camera.positional_pdf(interactions[0].geometry.point)
    selection_pdf = light.sampling_pdf()
    positional_pdf = light.positional_pdf(interactions[-1].geometry.point)
    if selection_pdf is not None or positional_pdf is not None:
        vertices[-1].reverse_pdf = _remap(selection_pdf) * _remap(positional_pdf)

    for i, interaction in enumerate(interactions):
        point = interaction.geometry.point
        normal = interaction.geometry.normal
        previous = interactions[i - 1] if i > 0 else None
        following = interactions[i + 1] if i < count - 1 else None
        to_previous = normalize(previous.geometry.point - point) if previous is not None else None
        to_following = normalize(following.geometry.point - point) if following is not None else None

        if i == 0:
            factor = camera.importance(point, to_following)
            forward = camera.directional_pdf(to_following)
            reverse = None
        elif i == count - 1:
            factor = light.radiance(point, normal, to_previous)
            forward = None
            reverse = light.directional_pdf(normal, to_previous)
        else:
            bsdf = interaction.bsdf
            sampled = i < camera_count - 1 or i > camera_count
            if specular[i] and sampled:
                factor = bsdf.weight(to_previous, to_following)
            else:
                factor = bsdf.reflectance(to_previous, to_following)
            forward = bsdf.pdf(to_previous, to_following, PathSide.CAMERA)
            reverse = bsdf.pdf(to_previous, to_following, PathSide.LIGHT)

        if following is not None:
            segment = following.geometry.point - point
            if forward is not None:
                vertices[i + 1].forward_pdf = forward * direction_to_area(segment, following.geometry.normal)
            dirac_segment = (i + 1 < camera_count and specular[i]) or (
                i >= camera_count and specular[i + 1]
            )
            if not dirac_segment:
                factor = factor * geometry_term(segment, normal, following.geometry.normal)

        if previous is not None and reverse is not None:
            segment = previous.geometry.point - point
            vertices[i - 1].reverse_pdf = reverse * direction_to_area(segment, previous.geometry.normal)

        vertices[i].throughput = factor

    return vertices


# =============================================================================
# Entry points
# =============================================================================


def generate(scene: Scene, sampler: Sampler, path_length: int) -> Optional[Path]:
    """Build a path of path_length vertices with a randomly chosen technique.

    Args:
        scene: Scene to trace against.
        sampler: Source of uniform numbers, read through its streams.
        path_length: Number of vertices, camera and light included.

    Returns:
        The connected path, or None when generation hits a dead end (missed
        intersection, failed visibility, wrong endpoint).
    """
    if path_length < MIN_PATH_LENGTH:
        return None

    technique = Technique.sample(path_length, sampler)
    camera_count, light_count = technique.camera_count, technique.light_count

    if camera_count == 0:
        interactions = _light_tracing(scene, sampler, light_count)
    elif light_count == 0:
        interactions = _camera_tracing(scene, sampler, camera_count)
    elif camera_count == 1 and light_count == 1:
        interactions = _direct_connection(scene, sampler)
    elif camera_count == 1:
        interactions = _connect_to_camera(scene, sampler, light_count)
    elif light_count == 1:
        interactions = _connect_to_light(scene, sampler, camera_count)
    else:
        interactions = _connect_subpaths(scene, sampler, camera_count, light_count)

    if interactions is None:
        return None
    vertices = connect(interactions, technique)
    if vertices is None:
        return None
    return Path(vertices=vertices, technique=technique, pixel=interactions[0].pixel)


def contribute(scene: Scene, sampler: Sampler, path_length: int) -> Contribution:
    """Generate a path and reduce it to its contribution (empty on failure)."""
    path = generate(scene, sampler, path_length)
    if path is None:
        return Contribution.empty()
    return path.contribution()
