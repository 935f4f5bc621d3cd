"""Outcome models returned by scaffolding and toolkit operations.

Operations never print; they return an ``OperationResult`` describing what
happened to each file or directory they touched and the CLI renders it.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, computed_field


class Status(str, Enum):
    """What an individual step did."""

    CREATED = "created"
    EXISTS = "exists"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    REMOVED = "removed"
    RENAMED = "renamed"


class StepResult(BaseModel):
    """A single file-system side effect (or deliberate non-effect)."""

    step: str = Field(..., description="Short step label such as 'material' or 'aggregator'")
    status: Status
    path: Path | None = Field(default=None)
    message: str = Field(default="")

    def describe(self) -> str:
        """One-line human readable summary."""
        target = self.message or (self.path.name if self.path else self.step)
        if self.status is Status.EXISTS:
            return f"{self.step} {target} already exists"
        return f"{self.status.value} {self.step} {target}"


class OperationResult(BaseModel):
    """All steps performed by one generator or toolkit operation."""

    operation: str
    steps: list[StepResult] = Field(default_factory=list)

    def add(
        self,
        step: str,
        status: Status,
        path: Path | None = None,
        message: str = "",
    ) -> StepResult:
        result = StepResult(step=step, status=status, path=path, message=message)
        self.steps.append(result)
        return result

    def extend(self, other: "OperationResult") -> None:
        self.steps.extend(other.steps)

    def status_of(self, step: str) -> Status | None:
        """Status of the first step labelled *step*, if any."""
        for item in self.steps:
            if item.step == step:
                return item.status
        return None

    @computed_field  # type: ignore[misc]
    @property
    def changed(self) -> bool:
        """True when at least one step modified the file system."""
        return any(
            item.status not in (Status.EXISTS, Status.UNCHANGED) for item in self.steps
        )
