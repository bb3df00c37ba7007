"""GC task base classes and result structures."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


@dataclass
class GCResult:
    """Result of a GC task execution.

    Attributes:
        task_name: Name of the GC task
        cleaned_count: Number of rows removed
        errors: List of error messages
    """

    task_name: str = ""
    cleaned_count: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, error: str) -> None:
        self.errors.append(error)


class GCTask(ABC):
    """A sweep over one kind of expiring record.

    - ExpiredDeviceGC: trusted devices past expires_at
    - ExpiredCodeGC: one-time codes past expires_at
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the task name (for logging)."""
        ...

    @abstractmethod
    async def run(self) -> GCResult:
        """Execute the sweep and summarize it in a GCResult."""
        ...
