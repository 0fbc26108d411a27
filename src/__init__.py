"""techknowledge: lazily generated, shared technology knowledge cache."""

from techknowledge.version import __version__

__all__ = ["__version__"]
