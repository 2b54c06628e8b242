"""Classifier registry and dispatch service."""

from importlib import metadata


def _discover_version() -> str:
    """Return the installed package version, falling back to dev marker."""
    try:
        return metadata.version("classifier-server")
    except metadata.PackageNotFoundError:  # pragma: no cover - running from a source tree
        return "0.0.0"


__all__ = ["__version__"]
__version__ = _discover_version()
