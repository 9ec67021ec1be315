"""Smoke tests that every package module imports after Taichi is initialised.

Importing a module compiles the signatures of its Taichi functions and
kernels, so annotation problems surface here rather than in whichever test
happens to import the module first.
"""

import importlib

import pytest

MODULES = [
    "src.pathtracer",
    "src.pathtracer.config",
    "src.pathtracer.core",
    "src.pathtracer.core.ray",
    "src.pathtracer.core.transform",
    "src.pathtracer.core.accumulator",
    "src.pathtracer.core.integrator",
    "src.pathtracer.core.progressive",
    "src.pathtracer.geometry",
    "src.pathtracer.materials",
    "src.pathtracer.scene",
    "src.pathtracer.scene.intersection",
    "src.pathtracer.scene.manager",
    "src.pathtracer.camera",
    "src.pathtracer.preview",
]


@pytest.mark.parametrize("name", MODULES)
def test_module_imports(name):
    """Test the module imports cleanly."""
    assert importlib.import_module(name) is not None


def test_taichi_function_annotations_are_types():
    """Test device helper signatures carry real Taichi types, not strings."""
    import inspect

    from src.pathtracer.core.transform import apply_normal
    from src.pathtracer.scene.intersection import intersect_primitive
    from src.pathtracer.scene.manager import get_material_type

    for func in (apply_normal, intersect_primitive, get_material_type):
        target = inspect.unwrap(func)
        for annotation in target.__annotations__.values():
            assert not isinstance(annotation, str)


@pytest.mark.parametrize(
    "name",
    [
        "src.pathtracer.core",
        "src.pathtracer.geometry",
        "src.pathtracer.materials",
        "src.pathtracer.scene",
        "src.pathtracer.camera",
        "src.pathtracer.preview",
    ],
)
def test_public_names_resolve(name):
    """Test every exported name exists on the package."""
    module = importlib.import_module(name)
    for public in module.__all__:
        assert hasattr(module, public), public
