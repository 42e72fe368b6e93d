"""
Exceptions raised by the triplet search.

Every error here is fatal for the current run. The search is deterministic,
so retrying a failed run reproduces the same failure.
"""

from typing import Any


class TripletSearchError(Exception):
    """
    Base exception for all search errors.

    Args:
        message: Human-readable error message.
        details: Extra structured context for logging.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        extra = ", ".join(f"{k}={v}" for k, v in self.details.items())
        return f"{self.message} ({extra})"


class DataNotFoundError(TripletSearchError, LookupError):
    """A requested species, move or ruleset is not in the dataset."""

    def __init__(self, kind: str, identifier: str):
        super().__init__(f"Unknown {kind}: {identifier}", {"kind": kind, "id": identifier})
        self.kind = kind
        self.identifier = identifier


class InvalidConfigurationError(TripletSearchError, ValueError):
    """Settings or input files that make the search impossible."""


class SimulationError(TripletSearchError):
    """The battle engine could not produce a rating."""
