# domain/steps/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from domain.context import Context
    from domain.exceptions import StepError
    from domain.request import Request


class Step(ABC):
    """
    One named unit of work: builds a request and reacts to its outcome.

    Instances are shared by reference (registry entries, callers), so a Step
    keeps no per-run state of its own. All mutation goes through the Context
    handed to the callbacks, and the Context must not be kept after the
    callback returns.

    Callbacks run on the executing thread. They must not sleep; a step that
    wants a pause before the next one records it with
    ``ctx.set_next_step(name, delay_sec=...)`` and lets the caller wait.
    """

    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def on_request(self) -> "Request": ...

    @abstractmethod
    def on_success(self, ctx: "Context") -> None: ...

    @abstractmethod
    def on_error(self, ctx: "Context", err: "StepError") -> None: ...

    @abstractmethod
    def on_timeout(self, ctx: "Context") -> None: ...


class BaseStep(Step):
    """Step with no-op error/timeout hooks and a name taken from ``step_name``."""

    step_name: str = ""

    def name(self) -> str:
        return self.step_name or type(self).__name__

    def on_error(self, ctx: "Context", err: "StepError") -> None:
        return None

    def on_timeout(self, ctx: "Context") -> None:
        return None
