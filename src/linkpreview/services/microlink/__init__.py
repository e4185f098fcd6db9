"""Metadata endpoint client package."""

from .client import MicrolinkClient

__all__ = ["MicrolinkClient"]
