"""
Background task lifecycle

A task moves PENDING -> RUNNING -> FINISHED | FAILED | CANCELED.
A pending task may also be canceled before it is dispatched.
"""
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class TaskState(Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    FINISHED = "FINISHED"
    FAILED = "FAILED"
    CANCELED = "CANCELED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset({TaskState.FINISHED, TaskState.FAILED, TaskState.CANCELED})

_TRANSITIONS = {
    TaskState.PENDING: frozenset({TaskState.RUNNING, TaskState.CANCELED}),
    TaskState.RUNNING: frozenset({TaskState.FINISHED, TaskState.FAILED, TaskState.CANCELED}),
    TaskState.FINISHED: frozenset(),
    TaskState.FAILED: frozenset(),
    TaskState.CANCELED: frozenset(),
}


class InvalidTransitionError(ValueError):
    """Raised when a task is moved to a state it cannot reach"""

    def __init__(self, current: TaskState, target: TaskState):
        super().__init__(f"Cannot move task from {current.value} to {target.value}")
        self.current = current
        self.target = target


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TaskStatus:
    """Immutable snapshot of a task's lifecycle"""
    state: TaskState = TaskState.PENDING
    message: Optional[str] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    @classmethod
    def pending(cls) -> 'TaskStatus':
        return cls(state=TaskState.PENDING, created_at=_utcnow())

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    def transition(self, target: TaskState, message: Optional[str] = None) -> 'TaskStatus':
        """
        Return the status after moving to target.

        Raises:
            InvalidTransitionError: target is not reachable from the current state
        """
        if target not in _TRANSITIONS[self.state]:
            raise InvalidTransitionError(self.state, target)

        now = _utcnow()
        if target is TaskState.RUNNING:
            return replace(self, state=target, started_at=now)
        return replace(self, state=target, message=message, ended_at=now)

    def to_dict(self) -> dict:
        return {
            'status': self.state.value,
            'message': self.message,
            'startedAt': self.started_at.isoformat() if self.started_at else None,
            'endedAt': self.ended_at.isoformat() if self.ended_at else None,
        }
