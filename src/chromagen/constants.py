"""
ChromaGen Studio - Constants and Configuration

This module contains all constant values used throughout the application:
- Chroma key defaults and thresholds
- Default layer transforms
- Canvas presets
- Compositing constants (fit caps, drop shadow, perspective)
- 3D scene defaults and primitive dimensions
"""

# ======================================================================
# CHROMA KEY
# ======================================================================

# Max Euclidean distance in 8-bit RGB space, sqrt(3 * 255^2)
MAX_RGB_DISTANCE = 441.67

# Distance covered by the feather band at smoothness = 1.0
FEATHER_RANGE = 100.0

DEFAULT_KEY_COLOR = '#00ff00'  # Green
DEFAULT_SIMILARITY = 0.4
DEFAULT_SMOOTHNESS = 0.1
DEFAULT_SPILL = 0.1

# Delay between the last settings change and recomputing the cutout
KEYING_DEBOUNCE_MS = 100

# ======================================================================
# LAYER TRANSFORMS
# ======================================================================

DEFAULT_TRANSFORM = {
    'x': 0.0,
    'y': 0.0,
    'scale': 1.0,
    'rotate': 0.0,
    'perspective_x': 0.0,
    'perspective_y': 0.0,
    'skew_x': 0.0,
    'skew_y': 0.0,
    'origin_x': 50.0,
    'origin_y': 50.0,
    'opacity': 1.0,
    'visible': True,
}

# Scale floor; scale must stay strictly positive
SCALE_MIN = 0.01

# Skew / tilt limits in degrees (tan() and the perspective divide blow up at 90)
ANGLE_LIMIT = 89.0

# ======================================================================
# CANVAS
# ======================================================================

DEFAULT_CANVAS = {'width': 1280, 'height': 720, 'name': "HD Landscape (16:9)"}

CANVAS_PRESETS = [
    {'width': 1280, 'height': 720, 'name': "HD Landscape (720p)"},
    {'width': 1920, 'height': 1080, 'name': "Full HD (1080p)"},
    {'width': 1080, 'height': 1920, 'name': "Social Story (9:16)"},
    {'width': 1080, 'height': 1080, 'name': "Square Post (1:1)"},
    {'width': 1080, 'height': 1350, 'name': "Portrait (4:5)"},
    {'width': 1200, 'height': 628, 'name': "Social Landscape"},
]

# Fill used when no background is drawn
EMPTY_CANVAS_COLOR = '#0f172a'

# ======================================================================
# COMPOSITING
# ======================================================================

# Foreground intrinsic width cap, in canvas pixels
FOREGROUND_MAX_WIDTH = 800

# Drop shadow, all distances multiplied by the foreground scale
SHADOW_COLOR = (0, 0, 0)
SHADOW_ALPHA = 0.6
SHADOW_BLUR = 30.0
SHADOW_OFFSET_X = 10.0
SHADOW_OFFSET_Y = 20.0

# Perspective distance for the preview tilt (CSS perspective(1000px))
PERSPECTIVE_DEPTH = 1000.0

# Preview fit: padding around the artboard and max zoom
PREVIEW_PADDING = 64
PREVIEW_MAX_SCALE = 1.2

# Drag highlight drawn around the foreground in preview
HIGHLIGHT_COLOR = (6, 182, 212, 128)
HIGHLIGHT_WIDTH = 2.0
DRAG_OPACITY = 0.8

# ======================================================================
# 3D SCENE
# ======================================================================

SCENE_OBJECT_TYPES = ('cube', 'sphere', 'cone', 'torus')

DEFAULT_SCENE_OBJECT = {
    'position': (0.0, 0.0, 0.0),
    'rotation': (0.0, 0.0, 0.0),
    'scale': (1.0, 1.0, 1.0),
    'color': '#06b6d4',
}

# Geometry parameters per primitive type
PRIMITIVE_GEOMETRY = {
    'cube': ('box', {'width': 1.0, 'height': 1.0, 'depth': 1.0}),
    'sphere': ('sphere', {'radius': 0.6, 'width_segments': 32, 'height_segments': 32}),
    'cone': ('cone', {'radius': 0.6, 'height': 1.2, 'radial_segments': 32}),
    'torus': ('torus', {'radius': 0.5, 'tube': 0.2, 'radial_segments': 16, 'tubular_segments': 100}),
}

MATERIAL_METALNESS = 0.1
MATERIAL_ROUGHNESS = 0.5

AMBIENT_LIGHT_INTENSITY = 0.6
DIRECTIONAL_LIGHT_INTENSITY = 0.8
DIRECTIONAL_LIGHT_POSITION = (5.0, 5.0, 5.0)

CAMERA_FOV = 50.0
CAMERA_NEAR = 0.1
CAMERA_FAR = 1000.0
CAMERA_Z = 10.0

# ======================================================================
# GENERATION / VIDEO
# ======================================================================

ASPECT_RATIOS = ["1:1", "3:4", "4:3", "9:16", "16:9", "21:9"]
IMAGE_SIZES = ["1K", "2K", "4K"]
DEFAULT_ASPECT_RATIO = "16:9"
DEFAULT_IMAGE_SIZE = "1K"

DEFAULT_VIDEO_PROMPT = "Cinematic camera movement, natural motion, high quality."

# ======================================================================
# EXPORT / CONFIG
# ======================================================================

EXPORT_FILENAME_PREFIX = 'chromagen-composite'
MAX_RECENT_EXPORTS = 10
CONFIG_DIR_NAME = '.chromagen'
CONFIG_FILE_NAME = 'config.json'
