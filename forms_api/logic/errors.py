"""Domain error types surfaced by the HTTP error handlers."""

from __future__ import annotations

from typing import Dict, List


class NotFoundError(LookupError):
    """An identifier did not resolve within its expected parent scope."""

    def __init__(self, resource: str, identifier: object):
        super().__init__(f"{resource} {identifier} not found")
        self.resource = resource
        self.identifier = identifier


class MissingParameterError(ValueError):
    def __init__(self, param: str):
        super().__init__(f"param is missing or the value is empty: {param}")
        self.param = param


class RecordInvalid(ValueError):
    """Validation failed; ``errors`` maps attribute (or ``base``) to messages."""

    def __init__(self, errors: Dict[str, List[str]]):
        super().__init__("Validation failed: " + ", ".join(f"{k} {'; '.join(v)}" for k, v in errors.items()))
        self.errors = errors


__all__ = ["NotFoundError", "MissingParameterError", "RecordInvalid"]
