# domain/exceptions.py
from __future__ import annotations

from typing import List, Optional


class StepError(Exception):
    """Base class for every failure surfaced by step execution."""


class StepNotFound(StepError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"step not found: {name}")


class TransportError(StepError):
    """Failure sending the request or reading its response (DNS, refused, TLS...)."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class RequestTimeout(TransportError):
    """The transport deadline carried on the request was exceeded."""


class StatusCodeNotFound(StepError):
    def __init__(self, actual: int, expected: Optional[List[int]] = None):
        self.actual = actual
        self.expected = list(expected or [])
        super().__init__(f"status code {actual} not in expected codes {self.expected}")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StatusCodeNotFound):
            return NotImplemented
        return self.actual == other.actual and self.expected == other.expected

    def __hash__(self) -> int:
        return hash((self.actual, tuple(self.expected)))


class DuplicateStepName(StepError):
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"step already registered: {name}")


class RequestAlreadySent(StepError):
    def __init__(self, step_name: Optional[str] = None):
        self.step_name = step_name
        super().__init__(f"request already sent for step: {step_name or '<none>'}")


class BodyDecodeError(StepError):
    """Raised by Context.body_json only; never changes a step's outcome."""
