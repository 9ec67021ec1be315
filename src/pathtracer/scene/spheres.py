"""Two-sphere demo scene.

A small scene lit only by the sky gradient:
- a mirror sphere (radius 0.5) at (-1, 0, -1)
- a red diffuse sphere (radius 0.5) at (0, 0, -1)
- a yellow diffuse ground patch at height -0.5 below the red sphere

The camera sits at (0, 0, 0.5) looking at the origin with a 90 degree
vertical field of view.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.pathtracer.scene.spheres import create_spheres_scene
    >>> from src.pathtracer.core.progressive import render_scene
    >>> world, camera = create_spheres_scene()
    >>> renderer = render_scene(world, camera, 80, 60, samples_per_pixel=4)
"""

from src.pathtracer.camera.thin_lens import ThinLensCamera
from src.pathtracer.core.transform import Transform
from src.pathtracer.materials import Diffuse, Mirror
from src.pathtracer.scene.shapes import Aggregation, Plane, Sphere, TransformedShape

# =============================================================================
# Scene Constants
# =============================================================================

DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 600

SPHERE_RADIUS = 0.5
MIRROR_SPHERE_CENTER = (-1.0, 0.0, -1.0)
DIFFUSE_SPHERE_CENTER = (0.0, 0.0, -1.0)
DIFFUSE_SPHERE_ALBEDO = (0.8, 0.3, 0.3)

GROUND_HEIGHT = -0.5
GROUND_CENTER = (0.0, 0.0, -1.0)
GROUND_ALBEDO = (0.8, 0.8, 0.0)

CAMERA_LOOKFROM = (0.0, 0.0, 0.5)
CAMERA_LOOKAT = (0.0, 0.0, 0.0)
CAMERA_VUP = (0.0, 1.0, 0.0)
CAMERA_VFOV = 90.0
CAMERA_APERTURE = 0.0
CAMERA_FOCUS_DISTANCE = 0.5


def create_spheres_scene(
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    aperture: float = CAMERA_APERTURE,
) -> tuple[Aggregation, ThinLensCamera]:
    """Create the two-sphere demo scene.

    Args:
        width: Image width, used for the camera aspect ratio.
        height: Image height, used for the camera aspect ratio.
        aperture: Lens diameter of the camera.

    Returns:
        Tuple of (world, camera). Upload the world with
        ``SceneManager.load`` and the camera with ``setup_camera``, or pass
        both to ``render_scene``.
    """
    mirror = Mirror()
    red = Diffuse(DIFFUSE_SPHERE_ALBEDO)
    ground = Diffuse(GROUND_ALBEDO)

    world = Aggregation(
        [
            TransformedShape(
                Sphere(SPHERE_RADIUS, mirror), Transform.translation(*MIRROR_SPHERE_CENTER)
            ),
            TransformedShape(
                Sphere(SPHERE_RADIUS, red), Transform.translation(*DIFFUSE_SPHERE_CENTER)
            ),
            TransformedShape(
                Plane(GROUND_HEIGHT, ground), Transform.translation(*GROUND_CENTER)
            ),
        ]
    )

    camera = ThinLensCamera(
        lookfrom=CAMERA_LOOKFROM,
        lookat=CAMERA_LOOKAT,
        vup=CAMERA_VUP,
        vfov=CAMERA_VFOV,
        aspect_ratio=width / height,
        aperture=aperture,
        focus_distance=CAMERA_FOCUS_DISTANCE,
    )
    return world, camera
