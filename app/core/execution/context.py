# File: app/core/execution/context.py

import threading
import time
from typing import Optional


class ExecutionContext:
    """
    Cancellation scope for blocking work (subprocesses).

    A context is "done" once it is cancelled, its parent is cancelled,
    or its deadline has passed. Children never outlive their parent:
    a child's deadline is the earlier of its own timeout and the parent's.
    """

    def __init__(self, timeout: Optional[float] = None, parent: Optional["ExecutionContext"] = None):
        self._parent = parent
        self._cancelled = threading.Event()

        deadline = None
        if timeout is not None:
            deadline = time.monotonic() + timeout
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self.deadline: Optional[float] = deadline

    def child(self, timeout: Optional[float] = None) -> "ExecutionContext":
        return ExecutionContext(timeout=timeout, parent=self)

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def is_cancelled(self) -> bool:
        if self._cancelled.is_set():
            return True
        return self._parent is not None and self._parent.is_cancelled

    @property
    def expired(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    @property
    def done(self) -> bool:
        return self.is_cancelled or self.expired

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None when unbounded."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    def reason(self) -> str:
        if self.is_cancelled:
            return "cancelled"
        if self.expired:
            return "deadline exceeded"
        return "active"
