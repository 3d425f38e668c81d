# application/executor/step_registry.py
from __future__ import annotations

from threading import Lock
from typing import Dict, Iterable, List, Optional

from domain.exceptions import DuplicateStepName, StepNotFound
from domain.steps.base import Step


class StepRegistry:
    """
    Name -> Step mapping, filled at startup and read afterwards.

    A second insert under the same name replaces the first unless the
    registry is ``strict``, in which case DuplicateStepName is raised.
    """

    def __init__(self, steps: Optional[Iterable[Step]] = None, strict: bool = False):
        self._steps: Dict[str, Step] = {}
        self._strict = strict
        self._lock = Lock()
        if steps:
            self.insert_many(steps)

    @property
    def strict(self) -> bool:
        return self._strict

    def insert(self, step: Step) -> None:
        name = step.name()
        if not name:
            raise ValueError(f"step has an empty name: {type(step).__name__}")
        with self._lock:
            if self._strict and name in self._steps:
                raise DuplicateStepName(name)
            self._steps[name] = step

    def insert_shared(self, step: Step) -> None:
        # Python already shares by reference; kept so callers holding the
        # same instance elsewhere read naturally.
        self.insert(step)

    def insert_many(self, steps: Iterable[Step]) -> None:
        for step in steps:
            self.insert(step)

    def get(self, name: str) -> Step:
        step = self._steps.get(name)
        if step is None:
            raise StepNotFound(name)
        return step

    def find(self, name: str) -> Optional[Step]:
        return self._steps.get(name)

    def names(self) -> List[str]:
        return list(self._steps)

    def contains_name(self, name: str) -> bool:
        return name in self._steps

    def contains_step(self, step: Step) -> bool:
        return step.name() in self._steps

    def __contains__(self, name: object) -> bool:
        return name in self._steps

    def __len__(self) -> int:
        return len(self._steps)
