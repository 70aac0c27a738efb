"""
Tests for the chroma-key segmentation engine.

Covers:
- Alpha thresholds (keyed / feathered / untouched)
- Hard step when smoothness is 0
- Clamping of similarity / smoothness
- RGB preservation, shape handling, purity
- Debounced KeyingScheduler
"""
import numpy as np
import pytest

from chromagen.models.chroma import ChromaKeySettings
from chromagen.services.segmentation import KeyingScheduler, key_distances, key_out

from conftest import solid


def _settings(similarity, smoothness, color='#00ff00'):
    return ChromaKeySettings(color=color, similarity=similarity, smoothness=smoothness)


# ══════════════════════════════════════════════════════════════════════════
# key_out
# ══════════════════════════════════════════════════════════════════════════

class TestKeyOut:

    def test_pure_green_fully_transparent(self, pure_green):
        result = key_out(pure_green, ChromaKeySettings())
        assert result.shape == (10, 10, 4)
        assert np.all(result[..., 3] == 0)

    def test_rgb_unchanged(self, subject_image):
        result = key_out(subject_image, ChromaKeySettings())
        assert np.array_equal(result[..., :3], subject_image[..., :3])

    def test_far_colors_keep_alpha(self, subject_image):
        result = key_out(subject_image, ChromaKeySettings())
        # red square survives, green border is removed
        assert result[15, 20, 3] == 255
        assert result[0, 0, 3] == 0

    def test_existing_alpha_preserved_outside_band(self):
        image = solid(4, 4, (255, 0, 0), alpha=128)
        result = key_out(image, ChromaKeySettings())
        assert np.all(result[..., 3] == 128)

    def test_feather_band_is_linear(self):
        # inner = 0, outer = 100; distance 50 -> floor(127.5)
        image = solid(2, 2, (0, 205, 0))
        result = key_out(image, _settings(0.0, 1.0))
        assert np.all(result[..., 3] == 127)

    def test_exact_key_at_zero_similarity_is_band_start(self):
        image = solid(2, 2, (0, 255, 0))
        result = key_out(image, _settings(0.0, 1.0))
        assert np.all(result[..., 3] == 0)

    def test_hard_step_without_smoothness(self):
        # inner = 0.1 * 441.67 = 44.167
        near = solid(1, 1, (0, 215, 0))  # d = 40
        far = solid(1, 1, (0, 205, 0))  # d = 50
        settings = _settings(0.1, 0.0)
        assert key_out(near, settings)[0, 0, 3] == 0
        assert key_out(far, settings)[0, 0, 3] == 255

    def test_full_similarity_keys_everything(self):
        image = solid(3, 3, (255, 0, 255))  # maximal distance from green
        result = key_out(image, _settings(1.0, 0.0))
        assert np.all(result[..., 3] == 0)

    def test_similarity_clamped_above_one(self):
        image = solid(3, 3, (255, 255, 255))
        result = key_out(image, _settings(5.0, 0.0))
        assert np.all(result[..., 3] == 0)

    def test_negative_similarity_clamped_to_zero(self):
        image = solid(3, 3, (0, 255, 0))
        result = key_out(image, _settings(-1.0, 0.0))
        # inner == outer == 0, nothing is closer than 0
        assert np.all(result[..., 3] == 255)

    def test_rgb_input_gets_alpha_channel(self):
        image = np.full((5, 7, 3), 200, dtype=np.uint8)
        result = key_out(image, ChromaKeySettings())
        assert result.shape == (5, 7, 4)
        assert result.dtype == np.uint8
        assert np.all(result[..., 3] == 255)

    def test_input_not_modified(self, subject_image):
        before = subject_image.copy()
        key_out(subject_image, ChromaKeySettings())
        assert np.array_equal(subject_image, before)

    def test_custom_key_color(self):
        image = solid(2, 2, (0, 0, 255))
        result = key_out(image, _settings(0.4, 0.1, color='#0000ff'))
        assert np.all(result[..., 3] == 0)

    def test_empty_image(self):
        image = np.zeros((0, 0, 4), dtype=np.uint8)
        assert key_out(image, ChromaKeySettings()).shape == (0, 0, 4)

    def test_rejects_bad_shape(self):
        with pytest.raises(ValueError):
            key_out(np.zeros((4, 4), dtype=np.uint8), ChromaKeySettings())

    def test_distances(self):
        image = solid(1, 1, (3, 4, 0))
        assert key_distances(image, (0, 0, 0))[0, 0] == pytest.approx(5.0)


# ══════════════════════════════════════════════════════════════════════════
# KeyingScheduler
# ══════════════════════════════════════════════════════════════════════════

class TestKeyingScheduler:

    def test_flush_runs_pending_job(self, qapp, pure_green):
        scheduler = KeyingScheduler(interval_ms=10000)
        scheduler.request(pure_green, ChromaKeySettings())
        assert scheduler.is_pending()
        result = scheduler.flush()
        assert not scheduler.is_pending()
        assert np.all(result[..., 3] == 0)

    def test_flush_without_job_returns_none(self, qapp):
        assert KeyingScheduler().flush() is None

    def test_timer_emits_keyed(self, qtbot, pure_green):
        scheduler = KeyingScheduler(interval_ms=10)
        with qtbot.waitSignal(scheduler.keyed, timeout=2000) as blocker:
            scheduler.request(pure_green, ChromaKeySettings())
        assert blocker.args[0].shape == (10, 10, 4)

    def test_requests_are_coalesced(self, qtbot, pure_green):
        scheduler = KeyingScheduler(interval_ms=20)
        received = []
        scheduler.keyed.connect(received.append)
        with qtbot.waitSignal(scheduler.keyed, timeout=2000):
            scheduler.request(pure_green, _settings(0.0, 0.0))
            scheduler.request(pure_green, _settings(0.4, 0.1))
        qtbot.wait(100)
        assert len(received) == 1
        # the latest settings win
        assert np.all(received[0][..., 3] == 0)

    def test_cancel_drops_job(self, qapp, pure_green):
        scheduler = KeyingScheduler()
        scheduler.request(pure_green, ChromaKeySettings())
        scheduler.cancel()
        assert scheduler.flush() is None

    def test_settings_snapshot_at_request(self, qapp, pure_green):
        scheduler = KeyingScheduler()
        settings = ChromaKeySettings()
        scheduler.request(pure_green, settings)
        settings.similarity = 0.0
        settings.smoothness = 0.0
        result = scheduler.flush()
        assert np.all(result[..., 3] == 0)
