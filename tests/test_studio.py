"""
Tests for the Studio controller and its action handlers.

Covers:
- Loading foreground / background, keying schedule
- Transform edits, visibility, drag with hit testing
- Scene object actions and the 3D layer
- Export (PNG, data URI, file + recent exports)
- Generated backgrounds, video seed and video generation
"""
import re

import numpy as np
import pytest

from chromagen.actions.file_actions import default_export_filename
from chromagen.constants import DEFAULT_VIDEO_PROMPT
from chromagen.models.canvas import CanvasSettings, GenerationSettings
from chromagen.services.compositor import LayerRole
from chromagen.services.image_io import DecodeFailure, decode_image
from chromagen.studio import Studio

from conftest import green_screen, solid

RED = (255, 0, 0)
BLUE = (0, 0, 255)


@pytest.fixture
def small_studio(studio):
    studio.set_canvas(CanvasSettings(64, 36, "Test"))
    return studio


class FakeSceneRenderer:
    """Stands in for the OpenGL renderer; paints the whole frame one color"""

    def __init__(self):
        self.calls = []

    def render(self, graph, width, height):
        self.calls.append((len(graph), width, height))
        return solid(width, height, (0, 255, 0))


# ══════════════════════════════════════════════════════════════════════════
# Assets
# ══════════════════════════════════════════════════════════════════════════

class TestAssets:

    def test_load_foreground_schedules_keying(self, studio, subject_image):
        studio.load_foreground(subject_image)
        assert studio.session.keyed_foreground is None
        assert studio.keying.is_pending()
        studio.flush_keying()
        keyed = studio.session.keyed_foreground
        assert keyed.shape == subject_image.shape
        assert keyed[0, 0, 3] == 0
        assert keyed[15, 20, 3] == 255

    def test_load_foreground_resets_transform(self, studio, subject_image):
        studio.transform_actions.update('foreground', x=40, rotate=10)
        studio.load_foreground(subject_image)
        assert studio.session.transform.is_identity()
        studio.undo()
        assert studio.session.transform.x == 40

    def test_load_foreground_failure_leaves_state(self, studio):
        with pytest.raises(DecodeFailure):
            studio.load_foreground(b'not an image')
        assert studio.session.foreground is None
        assert not studio.can_undo()

    def test_timer_keys_foreground(self, qtbot, subject_image):
        studio = Studio(config_dir=None, shadow_enabled=False, keying_interval_ms=10)
        studio.load_foreground(subject_image)
        qtbot.waitUntil(lambda: studio.session.keyed_foreground is not None, timeout=2000)

    def test_chroma_change_rekeys(self, studio, subject_image):
        studio.load_foreground(subject_image)
        studio.flush_keying()
        studio.set_chroma(color='#ff0000')
        studio.flush_keying()
        keyed = studio.session.keyed_foreground
        assert keyed[0, 0, 3] == 255
        assert keyed[15, 20, 3] == 0

    def test_chroma_unknown_field(self, studio):
        with pytest.raises(ValueError):
            studio.set_chroma(hue=0.3)
        assert not studio.can_undo()

    def test_chroma_without_foreground(self, studio):
        studio.set_chroma(similarity=0.2)
        assert not studio.keying.is_pending()

    def test_load_background(self, studio):
        studio.load_background(solid(10, 10, RED))
        assert studio.session.background.shape == (10, 10, 4)

    def test_show_background_toggle(self, studio):
        studio.load_background(solid(10, 10, RED))
        studio.set_show_background(False)
        assert [layer.role for layer in studio.layers()] == []


# ══════════════════════════════════════════════════════════════════════════
# Generated backgrounds
# ══════════════════════════════════════════════════════════════════════════

class TestGeneratedBackgrounds:

    def test_generator_results_applied(self, studio):
        received = {}

        def generator(prompt, settings):
            received['prompt'] = prompt
            received['aspect'] = settings.aspect_ratio
            return [solid(4, 4, RED), solid(4, 4, BLUE)]

        assert studio.generate_backgrounds(generator, "a beach at dusk") == 2
        assert received == {'prompt': "a beach at dusk", 'aspect': "16:9"}
        assert len(studio.session.generated_backgrounds) == 2
        assert tuple(studio.session.background[0, 0, :3]) == RED

    def test_select_generated_background(self, studio):
        studio.set_generated_backgrounds([solid(4, 4, RED), solid(4, 4, BLUE)])
        studio.select_generated_background(1)
        assert tuple(studio.session.background[0, 0, :3]) == BLUE
        with pytest.raises(IndexError):
            studio.select_generated_background(5)

    def test_empty_results_change_nothing(self, studio):
        assert studio.generate_backgrounds(lambda prompt, settings: [], "x") == 0
        assert studio.session.background is None
        assert not studio.can_undo()

    def test_generator_error_propagates(self, studio):
        def generator(prompt, settings):
            raise ConnectionError("service down")

        with pytest.raises(ConnectionError):
            studio.generate_backgrounds(generator, "x")


# ══════════════════════════════════════════════════════════════════════════
# Transforms
# ══════════════════════════════════════════════════════════════════════════

class TestTransforms:

    def test_set_field(self, studio):
        studio.transform_actions.set_field('background', 'scale', 2.0)
        assert studio.session.background_transform.scale == 2.0
        assert studio.history_manager.get_undo_description() == "Change background scale"

    def test_unknown_field_does_not_snapshot(self, studio):
        with pytest.raises(ValueError):
            studio.transform_actions.update('foreground', zoom=2)
        assert not studio.can_undo()

    def test_unknown_layer(self, studio):
        with pytest.raises(ValueError):
            studio.transform_actions.update('midground', x=1)

    def test_toggle_visibility(self, studio):
        studio.transform_actions.toggle_visibility('foreground')
        assert not studio.session.transform.visible
        studio.undo()
        assert studio.session.transform.visible

    def test_reset(self, studio):
        studio.transform_actions.update('background', x=10, skew_x=5)
        studio.transform_actions.reset('background')
        assert studio.session.background_transform.is_identity()


# ══════════════════════════════════════════════════════════════════════════
# Drag
# ══════════════════════════════════════════════════════════════════════════

class TestDrag:

    @pytest.fixture
    def loaded(self, studio):
        studio.load_foreground(solid(100, 50, RED))
        studio.flush_keying()
        return studio

    def test_drag_converts_pointer_delta_by_view_scale(self, loaded):
        actions = loaded.transform_actions
        assert actions.begin_drag(25, 12, view_scale=0.5)
        assert actions.is_dragging
        actions.drag_to(35, 17)
        assert loaded.session.transform.x == pytest.approx(20)
        assert loaded.session.transform.y == pytest.approx(10)
        actions.end_drag()
        assert not actions.is_dragging

    def test_drag_snapshots_once(self, loaded):
        before = len(loaded.history_manager.past)
        actions = loaded.transform_actions
        actions.begin_drag(10, 10, 1.0)
        for step in range(5):
            actions.drag_to(10 + step, 10)
        actions.end_drag()
        assert len(loaded.history_manager.past) == before + 1
        loaded.undo()
        assert loaded.session.transform.x == 0

    def test_miss_does_not_start_drag(self, loaded):
        assert not loaded.transform_actions.begin_drag(500, 500, 1.0)
        assert not loaded.transform_actions.drag_to(510, 510)

    def test_hidden_foreground_not_hit(self, loaded):
        loaded.transform_actions.toggle_visibility('foreground')
        assert not loaded.transform_actions.hit_test(10, 10)

    def test_hit_test_follows_transform(self, loaded):
        loaded.transform_actions.update('foreground', x=300)
        assert not loaded.transform_actions.hit_test(50, 25)
        assert loaded.transform_actions.hit_test(350, 25)

    def test_preview_highlight_while_dragging(self, loaded):
        loaded.set_canvas(CanvasSettings(200, 100, "Test"))
        idle = loaded.render_preview(1.0).image
        loaded.transform_actions.begin_drag(50, 25, 1.0)
        dragging = loaded.render_preview(1.0).image
        assert not np.array_equal(idle, dragging)


# ══════════════════════════════════════════════════════════════════════════
# Scene
# ══════════════════════════════════════════════════════════════════════════

class TestSceneActions:

    def test_add_update_remove(self, studio):
        obj = studio.scene_actions.add_object('torus')
        assert len(studio.scene_sync.graph) == 1
        assert studio.scene_actions.update_object(obj.id, color='#ff0000')
        node = studio.scene_sync.graph.node_for(obj.id)
        assert node.material.color.to_hex() == '#ff0000'
        assert studio.scene_actions.remove_object(obj.id)
        assert len(studio.scene_sync.graph) == 0

    def test_invalid_type(self, studio):
        with pytest.raises(ValueError):
            studio.scene_actions.add_object('pyramid')
        assert not studio.can_undo()

    def test_unknown_id(self, studio):
        assert not studio.scene_actions.update_object('missing', position=(1, 1, 1))
        assert not studio.scene_actions.remove_object('missing')
        assert not studio.can_undo()

    def test_invalid_update_does_not_snapshot(self, studio):
        obj = studio.scene_actions.add_object('cube')
        with pytest.raises(ValueError):
            studio.scene_actions.update_object(obj.id, type='sphere')
        assert len(studio.history_manager.past) == 1

    def test_scene_layer_rendered(self, qapp):
        renderer = FakeSceneRenderer()
        studio = Studio(config_dir=None, scene_renderer=renderer, shadow_enabled=False)
        studio.set_canvas(CanvasSettings(64, 36, "Test"))
        assert LayerRole.SCENE not in [layer.role for layer in studio.layers()]
        studio.scene_actions.add_object('cube')
        result = studio.render_export()
        assert LayerRole.SCENE in result.drawn
        assert tuple(result.image[10, 10, :3]) == (0, 255, 0)
        assert renderer.calls == [(1, 64, 36)]


# ══════════════════════════════════════════════════════════════════════════
# Canvas
# ══════════════════════════════════════════════════════════════════════════

class TestCanvas:

    def test_preset(self, studio):
        studio.set_canvas_preset("Social Story (9:16)")
        assert studio.session.canvas.size == (1080, 1920)
        assert studio.compositor.canvas.size == (1080, 1920)
        assert studio.scene_sync.graph.camera.aspect == pytest.approx(1080 / 1920)

    def test_unknown_preset(self, studio):
        with pytest.raises(ValueError):
            studio.set_canvas_preset("IMAX")

    def test_view_scale(self, studio):
        assert studio.view_scale_for(1344, 784) == pytest.approx(1.0)


# ══════════════════════════════════════════════════════════════════════════
# Export
# ══════════════════════════════════════════════════════════════════════════

class TestExport:

    def test_nothing_to_export(self, studio):
        assert studio.file_actions.export_png() is None
        assert studio.file_actions.export_data_uri() is None

    def test_export_png(self, small_studio):
        small_studio.load_background(solid(64, 36, RED))
        data = small_studio.file_actions.export_png()
        assert data.startswith(b'\x89PNG')
        decoded = decode_image(data)
        assert decoded.shape == (36, 64, 4)
        assert tuple(decoded[18, 32, :3]) == RED

    def test_export_flushes_pending_keying(self, small_studio):
        small_studio.load_foreground(green_screen())
        assert small_studio.session.keyed_foreground is None
        image = small_studio.file_actions.export_image()
        assert image is not None
        assert not small_studio.keying.is_pending()

    def test_export_data_uri(self, small_studio):
        small_studio.load_background(solid(8, 8, BLUE))
        uri = small_studio.file_actions.export_data_uri()
        assert uri.startswith('data:image/png;base64,')

    def test_save_export(self, small_studio, tmp_path):
        small_studio.load_background(solid(8, 8, BLUE))
        path = small_studio.file_actions.save_export(tmp_path)
        assert path.exists()
        assert re.fullmatch(r'chromagen-composite-\d+\.png', path.name)
        assert small_studio.recent_exports[0] == str(path)

    def test_save_export_nothing(self, small_studio, tmp_path):
        assert small_studio.file_actions.save_export(tmp_path) is None
        assert small_studio.recent_exports == []

    def test_default_filename(self):
        assert default_export_filename(1700000000123) == 'chromagen-composite-1700000000123.png'


# ══════════════════════════════════════════════════════════════════════════
# Video
# ══════════════════════════════════════════════════════════════════════════

class TestVideo:

    def test_seed_defaults(self, small_studio):
        small_studio.load_background(solid(8, 8, RED))
        seed = small_studio.file_actions.build_video_seed()
        assert seed.prompt == DEFAULT_VIDEO_PROMPT
        assert seed.aspect_ratio == "16:9"
        assert seed.image.shape == (36, 64, 4)

    @pytest.mark.parametrize('aspect, expected', [
        ("9:16", "9:16"),
        ("1:1", "16:9"),
        ("21:9", "16:9"),
    ])
    def test_seed_aspect_ratio(self, small_studio, aspect, expected):
        small_studio.load_background(solid(8, 8, RED))
        small_studio.session.generation = GenerationSettings(aspect_ratio=aspect)
        assert small_studio.file_actions.build_video_seed("pan left").aspect_ratio == expected

    def test_seed_requires_content(self, studio):
        with pytest.raises(RuntimeError):
            studio.file_actions.build_video_seed()

    def test_generate_video(self, small_studio):
        small_studio.load_background(solid(8, 8, RED))
        seen = {}

        def generator(seed):
            seen['generating'] = small_studio.session.video.is_generating
            seen['prompt'] = seed.prompt
            return 'video-123'

        assert small_studio.file_actions.generate_video(generator, "slow zoom") == 'video-123'
        assert seen == {'generating': True, 'prompt': "slow zoom"}
        assert small_studio.session.video.video_handle == 'video-123'
        assert not small_studio.session.video.is_generating

    def test_generate_video_failure_clears_flag(self, small_studio):
        small_studio.load_background(solid(8, 8, RED))

        def generator(seed):
            raise TimeoutError("took too long")

        with pytest.raises(TimeoutError):
            small_studio.file_actions.generate_video(generator)
        assert not small_studio.session.video.is_generating
        assert small_studio.session.video.video_handle is None
