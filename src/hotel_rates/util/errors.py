from __future__ import annotations


class RateEngineError(Exception):
    """Base class for rate engine failures."""


class ValidationFailure(RateEngineError):
    """A blocking precondition failed before anything was submitted."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code


class TransportError(RateEngineError):
    """The rates collaborator rejected or could not complete a call."""

    def __init__(self, operation: str, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.operation = operation
        self.status_code = status_code
