"""Diffuse (ideal Lambertian) material implementation.

This module implements the Lambertian BRDF, which scatters incident light
uniformly over the hemisphere, weighted by the cosine of the angle from the
surface normal.

The BRDF is:
    f_r(wi, wo) = albedo / pi

Outgoing directions are drawn from a cosine-weighted distribution:
    pdf(wo) = cos(theta) / pi

The scatter function returns the BRDF value as the attenuation and the pdf
alongside it. The integrator multiplies by the cosine term and divides by
the pdf, so in expectation each bounce weighs exactly ``albedo``.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.materials.diffuse import Diffuse, scatter_diffuse
    >>> ground = Diffuse((0.8, 0.8, 0.0))
    >>> # Use within a Taichi kernel:
    >>> # event = scatter_diffuse(albedo, hit_point, normal)
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import offset_ray_origin, sample_cosine_hemisphere

from .scattering import ScatteringEvent, absorbed_event

# Type alias for 3D vectors
vec3 = tm.vec3


def _validate_albedo(albedo: tuple[float, float, float]) -> None:
    if len(albedo) != 3:
        raise ValueError(f"Albedo must have 3 components, got {len(albedo)}")
    for i, component in enumerate(albedo):
        if component < 0.0 or component > 1.0:
            raise ValueError(
                f"Albedo component {i} = {component} is outside [0, 1]. "
                "This would violate energy conservation."
            )


@dataclass(frozen=True, eq=False)
class Diffuse:
    """Host-side description of a diffuse material.

    Instances are immutable and compared by identity, so one object shared
    by several shapes is registered once and referenced by all of them.

    Attributes:
        albedo: The diffuse reflectance colour (RGB, each in [0, 1]).
    """

    albedo: tuple[float, float, float]

    def __post_init__(self) -> None:
        albedo = tuple(float(c) for c in self.albedo)
        _validate_albedo(albedo)
        object.__setattr__(self, "albedo", albedo)


@ti.func
def eval_diffuse(albedo: vec3) -> vec3:
    """Evaluate the Lambertian BRDF, ``albedo / pi``."""
    return albedo / tm.pi


@ti.func
def pdf_diffuse(normal: vec3, scattered_direction: vec3) -> ti.f32:
    """Compute the cosine-weighted sampling density of a direction.

    Args:
        normal: The surface normal (should be normalized).
        scattered_direction: The sampled direction (should be normalized).

    Returns:
        ``cos(theta) / pi``, or 0 for directions below the surface.
    """
    cos_theta = tm.dot(normal, scattered_direction)
    pdf = 0.0
    if cos_theta > 0.0:
        pdf = cos_theta / tm.pi
    return pdf


@ti.func
def scatter_diffuse_sample(
    albedo: vec3,
    point: vec3,
    normal: vec3,
    u: ti.f32,
    v: ti.f32,
) -> ScatteringEvent:
    """Scatter off a diffuse surface using the given uniform numbers.

    Args:
        albedo: The diffuse reflectance colour.
        point: The hit point.
        normal: The unit surface normal at the hit point.
        u: First uniform number in [0, 1].
        v: Second uniform number in [0, 1].

    Returns:
        A ScatteringEvent with the BRDF value as attenuation. Directions
        with a non-positive density (exactly grazing samples) are absorbed.
    """
    direction, pdf = sample_cosine_hemisphere(normal, u, v)

    event = absorbed_event()
    if pdf > 0.0:
        event = ScatteringEvent(
            scattered=1,
            origin=offset_ray_origin(point, normal),
            direction=direction,
            attenuation=eval_diffuse(albedo),
            pdf=pdf,
        )
    return event


@ti.func
def scatter_diffuse(albedo: vec3, point: vec3, normal: vec3) -> ScatteringEvent:
    """Scatter off a diffuse surface with two fresh random numbers."""
    u = ti.random(ti.f32)
    v = ti.random(ti.f32)
    return scatter_diffuse_sample(albedo, point, normal, u, v)


# =============================================================================
# Material Field Storage (for scene-level material management)
# =============================================================================

# Maximum number of diffuse materials in the scene
MAX_DIFFUSE_MATERIALS = 256

# Storage for diffuse material properties
diffuse_albedos = ti.Vector.field(3, dtype=ti.f32, shape=MAX_DIFFUSE_MATERIALS)
num_diffuse_materials = ti.field(dtype=ti.i32, shape=())


def clear_diffuse_materials() -> None:
    """Clear all diffuse materials."""
    num_diffuse_materials[None] = 0


def add_diffuse_material(albedo: tuple[float, float, float]) -> int:
    """Add a diffuse material to the material registry.

    Args:
        albedo: The diffuse reflectance colour as (R, G, B).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any albedo component is outside [0, 1].
    """
    _validate_albedo(albedo)

    idx = num_diffuse_materials[None]
    if idx >= MAX_DIFFUSE_MATERIALS:
        raise RuntimeError(
            f"Maximum number of diffuse materials ({MAX_DIFFUSE_MATERIALS}) exceeded"
        )

    diffuse_albedos[idx] = [albedo[0], albedo[1], albedo[2]]
    num_diffuse_materials[None] = idx + 1
    return idx


def get_diffuse_material_count() -> int:
    """Get the number of diffuse materials in the registry."""
    return int(num_diffuse_materials[None])


@ti.func
def get_diffuse_albedo(material_idx: ti.i32) -> vec3:
    """Get the albedo for a diffuse material by index."""
    return diffuse_albedos[material_idx]
