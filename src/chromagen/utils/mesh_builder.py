"""
ChromaGen Studio - Primitive Mesh Builder

Generates indexed triangle meshes (positions, normals, triangle indices) for
the 3D scene primitives. Vertex layout and winding follow the conventional
parametric construction of three.js style geometries so that sizes line up
with what users expect from a web 3D scene:

- box: 6 faces x 4 vertices
- sphere: (width_segments + 1) x (height_segments + 1) grid, poles collapsed
- cone: open-top cylinder side plus bottom cap
- torus: (radial_segments + 1) x (tubular_segments + 1) grid

Triangles are counter-clockwise when seen from outside.
"""

import math
from dataclasses import dataclass

import numpy as np


@dataclass
class Mesh:
    """Indexed triangle mesh"""
    vertices: np.ndarray  # (N, 3) float32
    normals: np.ndarray  # (N, 3) float32
    indices: np.ndarray  # (M, 3) uint32

    @property
    def vertex_count(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def triangle_count(self) -> int:
        return int(self.indices.shape[0])


def _finish(vertices, normals, indices) -> Mesh:
    return Mesh(
        vertices=np.asarray(vertices, dtype=np.float32).reshape(-1, 3),
        normals=np.asarray(normals, dtype=np.float32).reshape(-1, 3),
        indices=np.asarray(indices, dtype=np.uint32).reshape(-1, 3),
    )


def _normalize(v):
    length = math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])
    if length == 0.0:
        return [0.0, 0.0, 0.0]
    return [v[0] / length, v[1] / length, v[2] / length]


# ======================================================================
# BOX
# ======================================================================

_AXIS = {'x': 0, 'y': 1, 'z': 2}


def build_box(width=1.0, height=1.0, depth=1.0) -> Mesh:
    """Axis aligned box centered at the origin, one quad per face"""
    vertices, normals, indices = [], [], []

    def plane(u, v, w, udir, vdir, plane_w, plane_h, plane_d):
        start = len(vertices)
        for iy in range(2):
            y = iy * plane_h - plane_h / 2.0
            for ix in range(2):
                x = ix * plane_w - plane_w / 2.0
                vec = [0.0, 0.0, 0.0]
                vec[_AXIS[u]] = x * udir
                vec[_AXIS[v]] = y * vdir
                vec[_AXIS[w]] = plane_d / 2.0
                vertices.append(vec)
                normal = [0.0, 0.0, 0.0]
                normal[_AXIS[w]] = 1.0 if plane_d > 0 else -1.0
                normals.append(normal)
        a, b, c, d = start, start + 2, start + 3, start + 1
        indices.extend([(a, b, d), (b, c, d)])

    plane('z', 'y', 'x', -1, -1, depth, height, width)    # +x
    plane('z', 'y', 'x', 1, -1, depth, height, -width)    # -x
    plane('x', 'z', 'y', 1, 1, width, depth, height)      # +y
    plane('x', 'z', 'y', 1, -1, width, depth, -height)    # -y
    plane('x', 'y', 'z', 1, -1, width, height, depth)     # +z
    plane('x', 'y', 'z', -1, -1, width, height, -depth)   # -z

    return _finish(vertices, normals, indices)


# ======================================================================
# SPHERE
# ======================================================================

def build_sphere(radius=1.0, width_segments=32, height_segments=16) -> Mesh:
    """UV sphere; the first and last rows collapse onto the poles"""
    width_segments = max(3, int(width_segments))
    height_segments = max(2, int(height_segments))
    vertices, normals, indices = [], [], []
    grid = []

    for iy in range(height_segments + 1):
        v = iy / height_segments
        row = []
        for ix in range(width_segments + 1):
            u = ix / width_segments
            x = -radius * math.cos(u * 2.0 * math.pi) * math.sin(v * math.pi)
            y = radius * math.cos(v * math.pi)
            z = radius * math.sin(u * 2.0 * math.pi) * math.sin(v * math.pi)
            vertices.append([x, y, z])
            normals.append(_normalize([x, y, z]))
            row.append(len(vertices) - 1)
        grid.append(row)

    for iy in range(height_segments):
        for ix in range(width_segments):
            a = grid[iy][ix + 1]
            b = grid[iy][ix]
            c = grid[iy + 1][ix]
            d = grid[iy + 1][ix + 1]
            if iy != 0:
                indices.append((a, b, d))
            if iy != height_segments - 1:
                indices.append((b, c, d))

    return _finish(vertices, normals, indices)


# ======================================================================
# CONE
# ======================================================================

def build_cone(radius=1.0, height=1.0, radial_segments=32) -> Mesh:
    """Cone with its tip at +height/2 and a closed base at -height/2"""
    radial_segments = max(3, int(radial_segments))
    vertices, normals, indices = [], [], []
    half_height = height / 2.0
    slope = radius / height if height else 0.0

    # Side: two rings, the top one collapsed onto the tip
    rings = []
    for iy in range(2):
        ring_radius = iy * radius
        row = []
        for ix in range(radial_segments + 1):
            theta = ix / radial_segments * 2.0 * math.pi
            sin_t, cos_t = math.sin(theta), math.cos(theta)
            vertices.append([ring_radius * sin_t, -iy * height + half_height, ring_radius * cos_t])
            normals.append(_normalize([sin_t, slope, cos_t]))
            row.append(len(vertices) - 1)
        rings.append(row)

    for ix in range(radial_segments):
        a = rings[0][ix]
        b = rings[1][ix]
        c = rings[1][ix + 1]
        d = rings[0][ix + 1]
        indices.append((a, b, d))
        indices.append((b, c, d))

    # Base cap: one center vertex per segment, then the rim
    center_start = len(vertices)
    for ix in range(radial_segments):
        vertices.append([0.0, -half_height, 0.0])
        normals.append([0.0, -1.0, 0.0])
    rim_start = len(vertices)
    for ix in range(radial_segments + 1):
        theta = ix / radial_segments * 2.0 * math.pi
        vertices.append([radius * math.sin(theta), -half_height, radius * math.cos(theta)])
        normals.append([0.0, -1.0, 0.0])
    for ix in range(radial_segments):
        c = center_start + ix
        i = rim_start + ix
        indices.append((i + 1, i, c))

    return _finish(vertices, normals, indices)


# ======================================================================
# TORUS
# ======================================================================

def build_torus(radius=1.0, tube=0.4, radial_segments=12, tubular_segments=48) -> Mesh:
    """Torus in the XY plane around the Z axis"""
    radial_segments = max(3, int(radial_segments))
    tubular_segments = max(3, int(tubular_segments))
    vertices, normals, indices = [], [], []

    for j in range(radial_segments + 1):
        v = j / radial_segments * 2.0 * math.pi
        for i in range(tubular_segments + 1):
            u = i / tubular_segments * 2.0 * math.pi
            x = (radius + tube * math.cos(v)) * math.cos(u)
            y = (radius + tube * math.cos(v)) * math.sin(u)
            z = tube * math.sin(v)
            vertices.append([x, y, z])
            cx, cy = radius * math.cos(u), radius * math.sin(u)
            normals.append(_normalize([x - cx, y - cy, z]))

    stride = tubular_segments + 1
    for j in range(1, radial_segments + 1):
        for i in range(1, tubular_segments + 1):
            a = stride * j + i - 1
            b = stride * (j - 1) + i - 1
            c = stride * (j - 1) + i
            d = stride * j + i
            indices.append((a, b, d))
            indices.append((b, c, d))

    return _finish(vertices, normals, indices)


_BUILDERS = {
    'box': build_box,
    'sphere': build_sphere,
    'cone': build_cone,
    'torus': build_torus,
}


def build_mesh(kind: str, params: dict) -> Mesh:
    """Build a mesh by geometry kind ('box', 'sphere', 'cone', 'torus')

    Raises:
        ValueError: if the kind is unknown
    """
    try:
        builder = _BUILDERS[kind]
    except KeyError:
        raise ValueError(f"Unknown geometry kind: {kind!r}") from None
    return builder(**params)
