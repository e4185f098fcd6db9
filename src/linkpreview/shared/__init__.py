"""LinkPreview Shared Module.

This package contains shared constants, models, types and error handling
used across LinkPreview.
"""

__all__ = ["constants", "errors", "logging", "models", "protocols", "types"]
