"""High-level clients."""

from .wiki import Wiki

__all__ = ["Wiki"]
