"""Materials module for scattering models.

Components:
    scattering: The ScatteringEvent record returned by every material
    diffuse: Ideal diffuse (Lambertian) reflection, cosine-weighted sampling
    mirror: Ideal specular reflection

Each material provides a host-side immutable description (``Diffuse``,
``Mirror``) used to build scenes, and a Taichi ``scatter_*`` function that
consumes a hit and produces a ScatteringEvent inside kernels.
"""

from .diffuse import (
    MAX_DIFFUSE_MATERIALS,
    Diffuse,
    add_diffuse_material,
    clear_diffuse_materials,
    eval_diffuse,
    get_diffuse_albedo,
    get_diffuse_material_count,
    pdf_diffuse,
    scatter_diffuse,
    scatter_diffuse_sample,
)
from .mirror import Mirror, scatter_mirror
from .scattering import ScatteringEvent, absorbed_event

Material = Diffuse | Mirror

__all__ = [
    "Material",
    "ScatteringEvent",
    "absorbed_event",
    # Diffuse
    "Diffuse",
    "add_diffuse_material",
    "clear_diffuse_materials",
    "eval_diffuse",
    "get_diffuse_albedo",
    "get_diffuse_material_count",
    "pdf_diffuse",
    "scatter_diffuse",
    "scatter_diffuse_sample",
    "MAX_DIFFUSE_MATERIALS",
    # Mirror
    "Mirror",
    "scatter_mirror",
]
