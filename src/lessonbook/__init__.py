"""lessonbook - Registration bookkeeping for a school's music lesson program."""

__version__ = "0.1.0"


def get_version() -> str:
    """Return the package version string."""
    return __version__
