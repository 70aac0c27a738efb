"""Offscreen 3D Scene Renderer Service.

Rasterizes a SceneGraph (see services/scene_sync.py) into an RGBA array the
size of the canvas, for use as the compositor's scene layer. Uses a
QOffscreenSurface for a headless GL context and the fixed-function pipeline
(compatibility profile): one ambient term, one directional light, per-node
color material.

The clear color is fully transparent so only the meshes cover the layers
below.
"""

import logging
import sys

import numpy as np
import OpenGL.GL as gl
from PyQt5.QtGui import QOffscreenSurface, QOpenGLContext, QSurfaceFormat
from PyQt5.QtWidgets import QApplication

from chromagen.services.scene_framebuffer import SceneFramebuffer
from chromagen.services.scene_sync import SceneGraph

logger = logging.getLogger(__name__)

# Phong shininess range mapped from material roughness
MAX_SHININESS = 128.0


class SceneRenderer:
    """Offscreen renderer producing RGBA arrays from a SceneGraph.

    Implements the scene raster source interface: render(graph, width, height).
    """

    def __init__(self):
        """Boot headless OpenGL context."""
        self._app = self._ensure_qapp()
        self._surface = None
        self._gl_context = None
        self.framebuffer = None
        self._meshes = {}  # Geometry -> Mesh

        self._init_gl_context()

    # ------------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------------

    @staticmethod
    def _ensure_qapp():
        """Return existing QApplication or create a headless one."""
        app = QApplication.instance()
        if app is None:
            app = QApplication(sys.argv)
        return app

    def _init_gl_context(self):
        """Create QOffscreenSurface + QOpenGLContext (compatibility profile)."""
        fmt = QSurfaceFormat()
        fmt.setProfile(QSurfaceFormat.CompatibilityProfile)
        fmt.setRenderableType(QSurfaceFormat.OpenGL)
        fmt.setDepthBufferSize(24)
        fmt.setRedBufferSize(8)
        fmt.setGreenBufferSize(8)
        fmt.setBlueBufferSize(8)
        fmt.setAlphaBufferSize(8)

        self._surface = QOffscreenSurface()
        self._surface.setFormat(fmt)
        self._surface.create()
        if not self._surface.isValid():
            raise RuntimeError("Failed to create QOffscreenSurface")

        self._gl_context = QOpenGLContext()
        self._gl_context.setFormat(fmt)
        if not self._gl_context.create():
            raise RuntimeError("Failed to create QOpenGLContext")

        if not self._gl_context.makeCurrent(self._surface):
            raise RuntimeError("Failed to make OpenGL context current")

        version = gl.glGetString(gl.GL_VERSION)
        logger.info("Scene GL context ready: %s", version.decode() if version else "unknown")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render(self, graph: SceneGraph, width: int, height: int) -> np.ndarray:
        """Render the scene graph into a width x height RGBA array.

        Args:
            graph: Synced SceneGraph
            width: Output width (canvas pixels)
            height: Output height (canvas pixels)

        Returns:
            HxWx4 uint8 array, transparent where no mesh covers a pixel
        """
        width, height = max(1, int(width)), max(1, int(height))
        self._gl_context.makeCurrent(self._surface)

        if self.framebuffer is None:
            self.framebuffer = SceneFramebuffer(width, height)
        else:
            self.framebuffer.resize(width, height)

        self.framebuffer.bind()
        self.framebuffer.clear()

        gl.glEnable(gl.GL_DEPTH_TEST)
        gl.glEnable(gl.GL_NORMALIZE)
        self._setup_camera(graph)
        self._setup_lights(graph)

        gl.glEnableClientState(gl.GL_VERTEX_ARRAY)
        gl.glEnableClientState(gl.GL_NORMAL_ARRAY)
        try:
            view = graph.camera.view_matrix()
            for node in graph.nodes:
                self._draw_node(node, view)
        finally:
            gl.glDisableClientState(gl.GL_NORMAL_ARRAY)
            gl.glDisableClientState(gl.GL_VERTEX_ARRAY)

        gl.glFlush()
        pixel_array = self.framebuffer.read_rgba()
        self.framebuffer.unbind()
        logger.debug("Rendered scene (%d nodes) at %dx%d", len(graph.nodes), width, height)
        return pixel_array

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    @staticmethod
    def _load_matrix(matrix):
        # numpy is row-major, GL expects column-major
        gl.glLoadMatrixd(np.ascontiguousarray(matrix.T, dtype=np.float64))

    def _setup_camera(self, graph):
        gl.glMatrixMode(gl.GL_PROJECTION)
        self._load_matrix(graph.camera.projection_matrix())
        gl.glMatrixMode(gl.GL_MODELVIEW)

    def _setup_lights(self, graph):
        ambient = graph.ambient_light
        directional = graph.directional_light

        ar, ag, ab = (c * ambient.intensity for c in ambient.color.to_float3())
        dr, dg, db = (c * directional.intensity for c in directional.color.to_float3())

        gl.glEnable(gl.GL_LIGHTING)
        gl.glLightModelfv(gl.GL_LIGHT_MODEL_AMBIENT, (ar, ag, ab, 1.0))

        gl.glEnable(gl.GL_LIGHT0)
        gl.glLightfv(gl.GL_LIGHT0, gl.GL_AMBIENT, (0.0, 0.0, 0.0, 1.0))
        gl.glLightfv(gl.GL_LIGHT0, gl.GL_DIFFUSE, (dr, dg, db, 1.0))
        gl.glLightfv(gl.GL_LIGHT0, gl.GL_SPECULAR, (dr, dg, db, 1.0))

        # Light position is transformed by the current modelview; w = 0 -> directional
        self._load_matrix(graph.camera.view_matrix())
        px, py, pz = directional.position
        gl.glLightfv(gl.GL_LIGHT0, gl.GL_POSITION, (px, py, pz, 0.0))

        gl.glEnable(gl.GL_COLOR_MATERIAL)
        gl.glColorMaterial(gl.GL_FRONT_AND_BACK, gl.GL_AMBIENT_AND_DIFFUSE)

    def _mesh_for(self, geometry):
        mesh = self._meshes.get(geometry)
        if mesh is None:
            mesh = geometry.build()
            self._meshes[geometry] = mesh
        return mesh

    def _draw_node(self, node, view):
        mesh = self._mesh_for(node.geometry)
        material = node.material

        shininess = max(1.0, (1.0 - material.roughness) * MAX_SHININESS)
        specular = material.metalness
        gl.glMaterialfv(gl.GL_FRONT_AND_BACK, gl.GL_SPECULAR, (specular, specular, specular, 1.0))
        gl.glMaterialf(gl.GL_FRONT_AND_BACK, gl.GL_SHININESS, shininess)

        r, g, b = material.color.to_float3()
        gl.glColor4f(r, g, b, 1.0)

        self._load_matrix(view @ node.model_matrix)
        gl.glVertexPointer(3, gl.GL_FLOAT, 0, mesh.vertices)
        gl.glNormalPointer(gl.GL_FLOAT, 0, mesh.normals)
        gl.glDrawElements(gl.GL_TRIANGLES, int(mesh.indices.size), gl.GL_UNSIGNED_INT, mesh.indices)

    # ------------------------------------------------------------------
    # Cleanup
    # ------------------------------------------------------------------

    def cleanup(self):
        """Release all OpenGL resources."""
        if self._gl_context is None:
            return
        self._gl_context.makeCurrent(self._surface)

        if self.framebuffer is not None:
            self.framebuffer.release()
            self.framebuffer = None
        self._meshes.clear()

        self._gl_context.doneCurrent()
