"""Shared plumbing: geometry, config, logging, timeline."""

from .geometry import Bounds, Point

__all__ = ["Bounds", "Point"]
