"""External API response models."""

from .microlink import MicrolinkAsset, MicrolinkData, MicrolinkResponse

__all__ = ["MicrolinkAsset", "MicrolinkData", "MicrolinkResponse"]
