"""LinkPreview - cached, rate-bounded link metadata for hover previews."""

__version__ = "0.1.0"
__author__ = "LinkPreview Team"
