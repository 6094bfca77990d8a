"""Taichi-based offline path tracer.

This package renders scenes of spheres with Lambertian, metal and dielectric
materials by Monte Carlo path tracing, with:
- Light transport bounded by a maximum bounce depth
- Thin-lens camera with depth of field
- Per-pixel random streams for reproducible parallel rendering
- PPM and PNG image output

Subpackages:
    core: Vector utilities, rays, random streams, integrator and render driver
    geometry: Hit records and sphere intersection
    materials: Lambertian, metal and dielectric scattering models
    scene: Scene storage, scene building and preset scenes
    camera: Thin-lens camera with ray generation
    output: Image export (PPM, PNG)
"""

__version__ = "0.1.0"
