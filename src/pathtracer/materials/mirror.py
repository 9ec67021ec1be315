"""Ideal mirror material implementation.

A mirror reflects the incoming direction about the surface normal:

    R = I - 2(I . N)N

The reflection is a delta distribution, so the sampled direction is
returned with a nominal pdf of 1 and a white attenuation. When the
reflected direction does not point away from the surface (grazing or
back-facing configurations) the path is absorbed.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.materials.mirror import Mirror, scatter_mirror
    >>> chrome = Mirror()
    >>> # Use within a Taichi kernel:
    >>> # event = scatter_mirror(incident_dir, hit_point, normal)
"""

from dataclasses import dataclass

import taichi as ti
import taichi.math as tm

from src.pathtracer.core.ray import offset_ray_origin, reflect

from .scattering import ScatteringEvent, absorbed_event

# Type alias for 3D vectors
vec3 = tm.vec3


@dataclass(frozen=True, eq=False)
class Mirror:
    """Host-side description of an ideal mirror.

    Mirrors carry no parameters. Like every material they are compared by
    identity, so a shared instance is registered once.
    """


@ti.func
def scatter_mirror(incident_direction: vec3, point: vec3, normal: vec3) -> ScatteringEvent:
    """Reflect a ray off an ideal mirror.

    Args:
        incident_direction: The incoming ray direction.
        point: The hit point.
        normal: The unit surface normal at the hit point.

    Returns:
        A ScatteringEvent with attenuation (1, 1, 1) and pdf 1, or an
        absorbed event if ``dot(reflected, normal) <= 0``.
    """
    reflected = reflect(incident_direction, normal)

    event = absorbed_event()
    if tm.dot(reflected, normal) > 0.0:
        event = ScatteringEvent(
            scattered=1,
            origin=offset_ray_origin(point, normal),
            direction=reflected,
            attenuation=vec3(1.0, 1.0, 1.0),
            pdf=1.0,
        )
    return event
