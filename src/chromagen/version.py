"""Application version module.

Installed: reads the distribution metadata of ``chromagen-studio``.
In frozen builds: uses _BAKED_VERSION written by the build script.
"""

# Overwritten by the build script for frozen builds.
_BAKED_VERSION = None

_DISTRIBUTION = "chromagen-studio"


def get_version() -> str:
    """Get the application version string (e.g. '1.0.0')."""
    if _BAKED_VERSION is not None:
        return _BAKED_VERSION
    return _installed_version()


def _installed_version() -> str:
    """Look up the version of the installed distribution (dev fallback 0.0.0)."""
    from importlib.metadata import version, PackageNotFoundError

    try:
        return version(_DISTRIBUTION)
    except PackageNotFoundError:
        return "0.0.0"
