"""Core building blocks shared by the LinkPreview services."""

from .statistics import PreviewMetrics

__all__ = ["PreviewMetrics"]
