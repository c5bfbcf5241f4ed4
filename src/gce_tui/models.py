from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


@dataclass(slots=True, frozen=True)
class InstanceRecord:
    name: str
    zone: str


class Phase(Enum):
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class Key(Enum):
    UP = "up"
    DOWN = "down"
    CONFIRM = "confirm"
    QUIT = "quit"
    OTHER = "other"

    @classmethod
    def from_name(cls, name: str) -> Key:
        return _KEY_NAMES.get(name, cls.OTHER)


_KEY_NAMES = {
    "up": Key.UP,
    "k": Key.UP,
    "down": Key.DOWN,
    "j": Key.DOWN,
    "enter": Key.CONFIRM,
    "q": Key.QUIT,
    "escape": Key.QUIT,
    "ctrl+c": Key.QUIT,
}


@dataclass(slots=True, frozen=True)
class SelectionState:
    phase: Phase
    inventory: tuple[InstanceRecord, ...] = ()
    cursor: int = 0
    last_error: str | None = None

    @classmethod
    def initial(cls) -> SelectionState:
        return cls(phase=Phase.LOADING)

    @property
    def selected(self) -> InstanceRecord | None:
        if self.phase is not Phase.READY or not self.inventory:
            return None
        return self.inventory[self.cursor]


@dataclass(slots=True, frozen=True)
class FetchSucceeded:
    inventory: tuple[InstanceRecord, ...]


@dataclass(slots=True, frozen=True)
class FetchFailed:
    cause: str


@dataclass(slots=True, frozen=True)
class KeyPressed:
    key: Key


Event = FetchSucceeded | FetchFailed | KeyPressed


@dataclass(slots=True, frozen=True)
class LaunchSession:
    record: InstanceRecord


class FetchFailedError(Exception):
    """Raised by an inventory source when the listing could not be completed."""

    def __init__(self, cause: str) -> None:
        super().__init__(cause)
        self.cause = cause
