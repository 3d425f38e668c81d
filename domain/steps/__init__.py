from domain.steps.base import Step, BaseStep

__all__ = [
    "Step",
    "BaseStep",
]
