"""Scattering event record shared by all materials.

A scattering event is one sampled continuation of a light path: the
outgoing ray, the colour weight it carries and the probability density of
having sampled it. Materials return an event with ``scattered == 0`` when
the path is absorbed.
"""

import taichi as ti
import taichi.math as tm

vec3 = tm.vec3


@ti.dataclass
class ScatteringEvent:
    """Result of scattering a ray at a surface.

    Attributes:
        scattered: 1 if the path continues, 0 if it was absorbed.
        origin: Origin of the outgoing ray (already offset off the surface).
        direction: Direction of the outgoing ray (unit length).
        attenuation: Colour weight of the bounce (BRDF value for diffuse,
            white for mirror).
        pdf: Probability density of the sampled direction (> 0 when
            scattered).
    """

    scattered: ti.i32
    origin: vec3
    direction: vec3
    attenuation: vec3
    pdf: ti.f32


@ti.func
def absorbed_event() -> ScatteringEvent:
    """Create a ScatteringEvent indicating the path was absorbed."""
    return ScatteringEvent(
        scattered=0,
        origin=vec3(0.0, 0.0, 0.0),
        direction=vec3(0.0, 0.0, 0.0),
        attenuation=vec3(0.0, 0.0, 0.0),
        pdf=0.0,
    )
