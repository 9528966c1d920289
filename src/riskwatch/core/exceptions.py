# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Custom exception hierarchy for riskwatch."""


class RiskWatchError(Exception):
    """Base exception for all riskwatch errors."""


class ConfigurationError(RiskWatchError):
    """Invalid or missing configuration, including malformed categories."""


class NotFoundError(RiskWatchError):
    """A referenced employee, violation, category, or job does not exist."""

    def __init__(self, resource: str, identifier: object) -> None:
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class ConflictError(RiskWatchError):
    """A concurrent writer changed the record first; retry against fresh state."""


class InvalidTransitionError(RiskWatchError):
    """A violation status transition request was rejected."""


class InvariantViolation(RiskWatchError):
    """An internal invariant did not hold."""


class StorageError(RiskWatchError):
    """Database or storage operation failed."""


class LLMError(RiskWatchError):
    """Error communicating with the LLM API."""
