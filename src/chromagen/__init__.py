"""ChromaGen Studio - chroma-key compositing core.

Packages:
    models   - session data (transforms, chroma settings, canvas, scene objects)
    services - keying, compositing, scene sync, image I/O, offscreen 3D raster
    utils    - history, transform math, meshes, logging helpers
    actions  - user-level operations wired through history
    main     - Studio mixins (history, config, assets)
"""

from .version import get_version

__version__ = get_version()
