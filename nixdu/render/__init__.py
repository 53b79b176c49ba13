"""Output formats for reduced graphs."""

from .dot import DotRenderer

__all__ = ["DotRenderer"]
