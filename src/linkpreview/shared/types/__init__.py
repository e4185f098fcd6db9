"""Shared type definitions."""

from .outcome import CacheOutcome, Failed, FetchOutcome, Miss, Ok, OutcomeSource

__all__ = ["CacheOutcome", "Failed", "FetchOutcome", "Miss", "Ok", "OutcomeSource"]
