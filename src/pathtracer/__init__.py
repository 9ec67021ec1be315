"""Monte Carlo path tracer built on Taichi.

This package estimates the radiance arriving at each pixel of a virtual
camera by tracing light paths backward from the eye into a scene of
spheres and unit plane patches, with support for:
- Affine-transformed sub-scenes and aggregation of shapes
- Importance-sampled diffuse and ideal mirror materials
- Thin-lens depth of field
- Progressive, data-parallel sample accumulation with gamma tone mapping

Subpackages:
    core: Rays, transforms, the integrator, pixel accumulators and the renderer
    geometry: Primitive intersection routines (sphere, plane patch)
    materials: Scattering models (diffuse, mirror)
    scene: Scene graph, device-side primitive table and scene manager
    camera: Thin-lens camera with ray generation
    preview: Image export and the interactive preview window
"""

__version__ = "0.1.0"
