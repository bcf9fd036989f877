from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class StateKind(str, Enum):
    IDLE = "idle"
    WAITING_FOR_LOGIN = "waiting_for_login"
    RUNNING = "running"
    PAUSED = "paused"
    WAITING_FOR_DELAY = "waiting_for_delay"
    PROCESSING_CONTACT = "processing_contact"
    COMPLETED = "completed"
    ERROR = "error"


_STARTABLE = {StateKind.IDLE, StateKind.PAUSED, StateKind.COMPLETED, StateKind.ERROR}
_PAUSABLE = {StateKind.RUNNING, StateKind.WAITING_FOR_DELAY, StateKind.PROCESSING_CONTACT}
_STOPPABLE = {
    StateKind.WAITING_FOR_LOGIN,
    StateKind.RUNNING,
    StateKind.PAUSED,
    StateKind.WAITING_FOR_DELAY,
    StateKind.PROCESSING_CONTACT,
}


@dataclass(frozen=True)
class AutomationState:
    kind: StateKind = StateKind.IDLE
    seconds: Optional[int] = None
    name: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def idle(cls) -> "AutomationState":
        return cls(StateKind.IDLE)

    @classmethod
    def waiting_for_login(cls) -> "AutomationState":
        return cls(StateKind.WAITING_FOR_LOGIN)

    @classmethod
    def running(cls) -> "AutomationState":
        return cls(StateKind.RUNNING)

    @classmethod
    def paused(cls) -> "AutomationState":
        return cls(StateKind.PAUSED)

    @classmethod
    def waiting_for_delay(cls, seconds: int) -> "AutomationState":
        return cls(StateKind.WAITING_FOR_DELAY, seconds=int(seconds))

    @classmethod
    def processing_contact(cls, name: str) -> "AutomationState":
        return cls(StateKind.PROCESSING_CONTACT, name=name)

    @classmethod
    def completed(cls) -> "AutomationState":
        return cls(StateKind.COMPLETED)

    @classmethod
    def error(cls, message: str) -> "AutomationState":
        return cls(StateKind.ERROR, message=message)

    @property
    def can_start(self) -> bool:
        return self.kind in _STARTABLE

    @property
    def can_pause(self) -> bool:
        return self.kind in _PAUSABLE

    @property
    def can_resume(self) -> bool:
        return self.kind == StateKind.PAUSED

    @property
    def can_stop(self) -> bool:
        return self.kind in _STOPPABLE

    @property
    def is_active(self) -> bool:
        return self.kind in _STOPPABLE

    @property
    def display_text(self) -> str:
        k = self.kind
        if k == StateKind.IDLE:
            return "Ready"
        if k == StateKind.WAITING_FOR_LOGIN:
            return "Waiting for LinkedIn login..."
        if k == StateKind.RUNNING:
            return "Running"
        if k == StateKind.PAUSED:
            return "Paused"
        if k == StateKind.WAITING_FOR_DELAY:
            return f"Next message in {self.seconds}s"
        if k == StateKind.PROCESSING_CONTACT:
            return f"Processing: {self.name}"
        if k == StateKind.COMPLETED:
            return "Completed"
        return f"Error: {self.message}"

    def to_dict(self) -> dict:
        d = {"state": self.kind.value, "text": self.display_text}
        if self.seconds is not None:
            d["seconds"] = self.seconds
        if self.name is not None:
            d["name"] = self.name
        if self.message is not None:
            d["message"] = self.message
        return d
