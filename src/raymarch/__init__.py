"""GPU raymarching renderer with an orbit camera.

The scene (up to ten signed-distance shapes, a point light and a camera) is
described by a small fixed-layout record on the GPU. A WGSL compute program
raymarches it into an RGBA8 image once per frame; the host reads the image
back and hands it to the preview window or to the PNG exporter.

Subpackages:
    core: Device selection, GPU resources, the raymarch engine and errors
    scene: Scene description layout and scene construction
    camera: Orbit camera controller and spherical coordinate helpers
    preview: Taichi GGUI preview window and PNG export
    shaders: The WGSL compute program
"""

__version__ = "0.1.0"
