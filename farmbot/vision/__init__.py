"""Vision contract and the values it reports."""

from .analyzer import AnalyzerSettings, ImageAnalyzer, PixelProbe
from .stats import ClientStats, Stat
from .targets import Target, TargetKind

__all__ = [
    "AnalyzerSettings",
    "ClientStats",
    "ImageAnalyzer",
    "PixelProbe",
    "Stat",
    "Target",
    "TargetKind",
]
