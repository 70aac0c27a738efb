"""
Tests for the 3D scene: primitive meshes and scene sync.

Covers:
- Mesh vertex / triangle counts per primitive, unit normals, bounds
- One node per scene object, in order, rebuilt on every sync
- Unknown types fall back to the cube
- Model matrix composition (T . R . S)
- Lights and camera survive syncs, camera aspect follows the canvas
"""
from types import SimpleNamespace

import numpy as np
import pytest

from chromagen.models.color import Color
from chromagen.models.scene_object import SceneObject
from chromagen.services.scene_sync import (
    Geometry, SceneGraph, SceneSync, euler_xyz_matrix, model_matrix,
)
from chromagen.utils.mesh_builder import build_box, build_cone, build_mesh, build_sphere, build_torus


# ══════════════════════════════════════════════════════════════════════════
# Meshes
# ══════════════════════════════════════════════════════════════════════════

class TestMeshes:

    @pytest.mark.parametrize('object_type, vertices, triangles', [
        ('cube', 24, 12),
        ('sphere', 1089, 1984),
        ('cone', 131, 96),
        ('torus', 1717, 3200),
    ])
    def test_primitive_counts(self, object_type, vertices, triangles):
        mesh = Geometry.for_type(object_type).build()
        assert mesh.vertex_count == vertices
        assert mesh.triangle_count == triangles

    @pytest.mark.parametrize('mesh', [
        build_box(1, 1, 1),
        build_sphere(0.6, 32, 32),
        build_cone(0.6, 1.2, 32),
        build_torus(0.5, 0.2, 16, 100),
    ])
    def test_normals_are_unit_length(self, mesh):
        lengths = np.linalg.norm(mesh.normals, axis=1)
        assert np.allclose(lengths, 1.0, atol=1e-5)

    @pytest.mark.parametrize('mesh', [
        build_box(1, 2, 3),
        build_sphere(0.6, 16, 8),
        build_cone(0.6, 1.2, 16),
        build_torus(0.5, 0.2, 8, 24),
    ])
    def test_indices_in_range(self, mesh):
        assert mesh.indices.max() < mesh.vertex_count
        assert mesh.indices.dtype == np.uint32

    def test_box_extent(self):
        mesh = build_box(1, 2, 3)
        assert np.allclose(mesh.vertices.max(axis=0), (0.5, 1.0, 1.5))
        assert np.allclose(mesh.vertices.min(axis=0), (-0.5, -1.0, -1.5))

    def test_sphere_radius(self):
        mesh = build_sphere(0.6, 32, 32)
        assert np.allclose(np.linalg.norm(mesh.vertices, axis=1), 0.6, atol=1e-5)

    def test_cone_tip_and_base(self):
        mesh = build_cone(0.6, 1.2, 32)
        assert mesh.vertices[:, 1].max() == pytest.approx(0.6)
        assert mesh.vertices[:, 1].min() == pytest.approx(-0.6)

    def test_torus_extent(self):
        mesh = build_torus(0.5, 0.2, 16, 100)
        radial = np.linalg.norm(mesh.vertices[:, :2], axis=1)
        assert radial.max() == pytest.approx(0.7, abs=1e-5)
        assert radial.min() == pytest.approx(0.3, abs=1e-5)

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            build_mesh('teapot', {})


# ══════════════════════════════════════════════════════════════════════════
# Matrices
# ══════════════════════════════════════════════════════════════════════════

class TestMatrices:

    def test_identity_defaults(self):
        assert np.allclose(model_matrix((0, 0, 0), (0, 0, 0), (1, 1, 1)), np.identity(4))

    def test_translation_column(self):
        m = model_matrix((1, 2, 3), (0, 0, 0), (1, 1, 1))
        assert np.allclose(m[:3, 3], (1, 2, 3))

    def test_rotation_z(self):
        m = euler_xyz_matrix(0, 0, 90)
        assert np.allclose(m @ [1, 0, 0, 1], [0, 1, 0, 1])

    def test_scale_before_rotation_before_translation(self):
        m = model_matrix((5, 0, 0), (0, 0, 90), (2, 1, 1))
        # (1,0,0) -> scaled (2,0,0) -> rotated (0,2,0) -> translated (5,2,0)
        assert np.allclose(m @ [1, 0, 0, 1], [5, 2, 0, 1])

    def test_xyz_order(self):
        m = euler_xyz_matrix(90, 90, 0)
        # Ry first takes +x to -z, then Rx takes -z to +y
        assert np.allclose(m @ [1, 0, 0, 1], [0, 1, 0, 1])


# ══════════════════════════════════════════════════════════════════════════
# Sync
# ══════════════════════════════════════════════════════════════════════════

class TestSceneSync:

    def test_one_node_per_object_in_order(self):
        objects = [SceneObject.create(t) for t in ('cube', 'sphere', 'cone', 'torus')]
        graph = SceneSync().sync(objects)
        assert [node.object_id for node in graph.nodes] == [obj.id for obj in objects]
        assert [node.geometry.kind for node in graph.nodes] == ['box', 'sphere', 'cone', 'torus']

    def test_empty_list_clears_nodes(self):
        sync = SceneSync()
        sync.sync([SceneObject.create('cube')])
        sync.sync([])
        assert len(sync.graph) == 0

    def test_sync_rebuilds_instead_of_accumulating(self):
        sync = SceneSync()
        objects = [SceneObject.create('cube'), SceneObject.create('torus')]
        sync.sync(objects)
        sync.sync(objects)
        assert len(sync.graph) == 2

    def test_node_reflects_object_fields(self):
        obj = SceneObject(type='sphere', position=(1, 2, 3), scale=(2, 2, 2), color='#ff0000')
        node = SceneSync().sync([obj]).node_for(obj)
        assert node.material.color == Color(255, 0, 0)
        assert np.allclose(node.model_matrix[:3, 3], (1, 2, 3))
        assert np.allclose(np.diag(node.model_matrix)[:3], (2, 2, 2))

    def test_material_defaults(self):
        node = SceneSync.build_node(SceneObject.create('cone'))
        assert node.material.metalness == pytest.approx(0.1)
        assert node.material.roughness == pytest.approx(0.5)

    def test_unknown_type_falls_back_to_cube(self):
        stray = SimpleNamespace(id='x', type='pyramid', color='#ffffff',
                                position=(0, 0, 0), rotation=(0, 0, 0), scale=(1, 1, 1))
        node = SceneSync.build_node(stray)
        assert node.geometry == Geometry.for_type('cube')

    def test_node_for_unknown_object(self):
        assert SceneGraph().node_for(SceneObject.create('cube')) is None

    def test_node_for_matches_instance_not_id(self):
        obj = SceneObject.create('cube')
        moved = obj.updated(position=(1, 0, 0))
        graph = SceneSync().sync([moved])
        assert moved.id == obj.id
        assert graph.node_for(obj) is None
        assert graph.node_for(moved).source is moved

    def test_lights_survive_sync(self):
        sync = SceneSync()
        ambient, directional = sync.graph.lights
        sync.sync([SceneObject.create('cube')])
        sync.sync([])
        assert sync.graph.lights[0] is ambient
        assert sync.graph.lights[1] is directional

    def test_light_setup(self):
        graph = SceneGraph()
        assert graph.ambient_light.intensity == pytest.approx(0.6)
        assert graph.directional_light.intensity == pytest.approx(0.8)
        assert graph.directional_light.position == (5.0, 5.0, 5.0)

    def test_camera(self):
        camera = SceneGraph().camera
        assert camera.fov == 50
        assert camera.position == (0.0, 0.0, 10.0)
        assert (camera.near, camera.far) == (0.1, 1000)

    def test_viewport_sets_aspect(self):
        sync = SceneSync()
        sync.set_viewport(1080, 1920)
        assert sync.graph.camera.aspect == pytest.approx(1080 / 1920)

    def test_zero_viewport_ignored(self):
        sync = SceneSync()
        before = sync.graph.camera.aspect
        sync.set_viewport(0, 100)
        assert sync.graph.camera.aspect == before

    def test_projection_maps_near_plane(self):
        camera = SceneGraph(aspect=1.0).camera
        p = camera.projection_matrix() @ [0, 0, -camera.near, 1]
        assert p[2] / p[3] == pytest.approx(-1.0)

    def test_view_matrix_moves_origin_in_front_of_camera(self):
        camera = SceneGraph().camera
        assert np.allclose(camera.view_matrix() @ [0, 0, 0, 1], [0, 0, -10, 1])
