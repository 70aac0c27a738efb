"""
ChromaGen Studio - Scene Sync

Keeps a renderable SceneGraph in step with the session's SceneObject list.
Every sync drops all mesh nodes and rebuilds one node per object; the lights
and the camera are created once and survive syncs.

The graph is plain data (geometry descriptors, materials, 4x4 model
matrices). Rasterizing it is the job of a scene renderer, see
services/scene_renderer.py.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from chromagen.constants import (
    PRIMITIVE_GEOMETRY, MATERIAL_METALNESS, MATERIAL_ROUGHNESS,
    AMBIENT_LIGHT_INTENSITY, DIRECTIONAL_LIGHT_INTENSITY, DIRECTIONAL_LIGHT_POSITION,
    CAMERA_FOV, CAMERA_NEAR, CAMERA_FAR, CAMERA_Z, DEFAULT_CANVAS,
)
from chromagen.models.color import Color
from chromagen.utils.mesh_builder import Mesh, build_mesh

logger = logging.getLogger(__name__)

FALLBACK_TYPE = 'cube'


# ======================================================================
# GRAPH ELEMENTS
# ======================================================================

@dataclass(frozen=True)
class Geometry:
    """Primitive geometry descriptor ('box', 'sphere', 'cone', 'torus' + parameters)"""
    kind: str
    params: Tuple[Tuple[str, float], ...]

    @classmethod
    def for_type(cls, object_type: str) -> 'Geometry':
        """Geometry for a scene object type; unknown types get the cube"""
        if object_type not in PRIMITIVE_GEOMETRY:
            logger.warning("Unknown scene object type %r, using %s geometry", object_type, FALLBACK_TYPE)
            object_type = FALLBACK_TYPE
        kind, params = PRIMITIVE_GEOMETRY[object_type]
        return cls(kind, tuple(sorted(params.items())))

    @property
    def parameters(self) -> Dict[str, float]:
        return dict(self.params)

    def build(self) -> Mesh:
        return build_mesh(self.kind, self.parameters)


@dataclass
class Material:
    """Standard (metal / rough) material"""
    color: Color
    metalness: float = MATERIAL_METALNESS
    roughness: float = MATERIAL_ROUGHNESS


@dataclass
class SceneNode:
    """One renderable mesh, tied to the scene object it came from"""
    object_id: str
    geometry: Geometry
    material: Material
    model_matrix: np.ndarray
    source: object = field(default=None, repr=False, compare=False)


@dataclass
class AmbientLight:
    color: Color = field(default_factory=lambda: Color(255, 255, 255))
    intensity: float = AMBIENT_LIGHT_INTENSITY


@dataclass
class DirectionalLight:
    color: Color = field(default_factory=lambda: Color(255, 255, 255))
    intensity: float = DIRECTIONAL_LIGHT_INTENSITY
    position: Tuple[float, float, float] = DIRECTIONAL_LIGHT_POSITION


@dataclass
class PerspectiveCamera:
    fov: float = CAMERA_FOV
    aspect: float = DEFAULT_CANVAS['width'] / DEFAULT_CANVAS['height']
    near: float = CAMERA_NEAR
    far: float = CAMERA_FAR
    position: Tuple[float, float, float] = (0.0, 0.0, CAMERA_Z)

    def projection_matrix(self) -> np.ndarray:
        """OpenGL style perspective projection (vertical fov in degrees)"""
        f = 1.0 / math.tan(math.radians(self.fov) / 2.0)
        depth = self.near - self.far
        return np.array([
            [f / self.aspect, 0.0, 0.0, 0.0],
            [0.0, f, 0.0, 0.0],
            [0.0, 0.0, (self.far + self.near) / depth, 2.0 * self.far * self.near / depth],
            [0.0, 0.0, -1.0, 0.0],
        ])

    def view_matrix(self) -> np.ndarray:
        """Camera looks down -Z from its position"""
        return translation_4x4(*(-c for c in self.position))


# ======================================================================
# MATRICES
# ======================================================================

def translation_4x4(x, y, z) -> np.ndarray:
    m = np.identity(4)
    m[:3, 3] = (x, y, z)
    return m


def euler_xyz_matrix(rx_degrees, ry_degrees, rz_degrees) -> np.ndarray:
    """Rotation for XYZ Euler angles in degrees: Rx . Ry . Rz"""
    rx, ry, rz = (math.radians(a) for a in (rx_degrees, ry_degrees, rz_degrees))
    cx, sx = math.cos(rx), math.sin(rx)
    cy, sy = math.cos(ry), math.sin(ry)
    cz, sz = math.cos(rz), math.sin(rz)
    mx = np.array([[1, 0, 0, 0], [0, cx, -sx, 0], [0, sx, cx, 0], [0, 0, 0, 1]], dtype=float)
    my = np.array([[cy, 0, sy, 0], [0, 1, 0, 0], [-sy, 0, cy, 0], [0, 0, 0, 1]], dtype=float)
    mz = np.array([[cz, -sz, 0, 0], [sz, cz, 0, 0], [0, 0, 1, 0], [0, 0, 0, 1]], dtype=float)
    return mx @ my @ mz


def model_matrix(position, rotation, scale) -> np.ndarray:
    """T(position) . Rx.Ry.Rz(rotation degrees) . S(scale)"""
    px, py, pz = position
    sx, sy, sz = scale
    return translation_4x4(px, py, pz) @ euler_xyz_matrix(*rotation) @ np.diag([sx, sy, sz, 1.0])


# ======================================================================
# GRAPH + SYNC
# ======================================================================

class SceneGraph:
    """Lights, camera and the mesh nodes of the current sync"""

    def __init__(self, aspect: float = None):
        self.ambient_light = AmbientLight()
        self.directional_light = DirectionalLight()
        self.camera = PerspectiveCamera()
        if aspect is not None:
            self.camera.aspect = aspect
        self.nodes: List[SceneNode] = []

    @property
    def lights(self) -> list:
        return [self.ambient_light, self.directional_light]

    def add(self, node: SceneNode):
        self.nodes.append(node)

    def clear_meshes(self):
        self.nodes = []

    def node_for(self, scene_object) -> Optional[SceneNode]:
        """Mesh node built from this exact scene object instance"""
        for node in self.nodes:
            if node.source is scene_object:
                return node
        return None

    def __len__(self):
        return len(self.nodes)


class SceneSync:
    """Rebuilds a SceneGraph from SceneObject lists"""

    def __init__(self, graph: SceneGraph = None):
        self.graph = graph or SceneGraph()

    def set_viewport(self, width: int, height: int):
        """Match the camera aspect to the canvas"""
        if width > 0 and height > 0:
            self.graph.camera.aspect = width / height

    def sync(self, scene_objects: Sequence) -> SceneGraph:
        """Drop all mesh nodes and build one per object, in list order"""
        self.graph.clear_meshes()
        for obj in scene_objects:
            self.graph.add(self.build_node(obj))
        logger.debug("Scene synced: %d node(s)", len(self.graph.nodes))
        return self.graph

    @staticmethod
    def build_node(obj) -> SceneNode:
        return SceneNode(
            object_id=obj.id,
            geometry=Geometry.for_type(obj.type),
            material=Material(color=Color.coerce(obj.color)),
            model_matrix=model_matrix(tuple(obj.position), tuple(obj.rotation), tuple(obj.scale)),
            source=obj,
        )
