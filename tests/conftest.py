"""
Shared fixtures for ChromaGen Studio tests.

Provides synthetic rasters and a Studio instance wired to the offscreen Qt
platform.
"""
import os

import numpy as np
import pytest

# Must be set before any QGuiApplication is created
os.environ.setdefault('QT_QPA_PLATFORM', 'offscreen')


# ── Raster helpers ──────────────────────────────────────────────────────

def solid(width, height, rgb, alpha=255):
    """HxWx4 uint8 image filled with one color"""
    image = np.zeros((height, width, 4), dtype=np.uint8)
    image[..., :3] = rgb
    image[..., 3] = alpha
    return image


def green_screen(width=40, height=30):
    """Pure green frame with an opaque red square in the middle"""
    image = solid(width, height, (0, 255, 0))
    image[height // 3:2 * height // 3, width // 3:2 * width // 3, :3] = (255, 0, 0)
    return image


# ── Fixtures ────────────────────────────────────────────────────────────

@pytest.fixture
def pure_green():
    """10x10 pure #00ff00 RGB image"""
    image = np.zeros((10, 10, 3), dtype=np.uint8)
    image[..., 1] = 255
    return image


@pytest.fixture
def subject_image():
    return green_screen()


@pytest.fixture
def studio(qapp):
    """Studio without config persistence or 3D renderer"""
    from chromagen.studio import Studio
    s = Studio(config_dir=None, shadow_enabled=False)
    yield s
    s.keying.cancel()
