"""Recoverable room errors and the result type reported back to callers."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel


class ErrorKind(str, Enum):
    """Category of a rejected request."""

    INVALID_ROOM = "invalid_room"
    INVALID_PARTICIPANT = "invalid_participant"
    INVALID_TARGET = "invalid_target"
    ROOM_FULL = "room_full"
    NOT_HOST = "not_host"
    PHASE_VIOLATION = "phase_violation"
    INVALID_CONFIG = "invalid_config"


class RoomError(Exception):
    """Raised when a request cannot be applied to a room.

    None of these end the room; GameServer turns them into a failed
    ActionResult without touching state.
    """

    kind: ErrorKind = ErrorKind.INVALID_ROOM

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)

    def __str__(self) -> str:
        return self.reason


class InvalidRoom(RoomError):
    kind = ErrorKind.INVALID_ROOM


class InvalidParticipant(RoomError):
    """Unknown participant, or one whose role does not own the action."""

    kind = ErrorKind.INVALID_PARTICIPANT


class InvalidTarget(RoomError):
    kind = ErrorKind.INVALID_TARGET


class RoomFull(RoomError):
    kind = ErrorKind.ROOM_FULL


class NotHost(RoomError):
    kind = ErrorKind.NOT_HOST


class PhaseViolation(RoomError):
    """Action submitted outside its sub-phase or after it completed."""

    kind = ErrorKind.PHASE_VIOLATION


class InvalidConfig(RoomError):
    kind = ErrorKind.INVALID_CONFIG


class ActionResult(BaseModel):
    """Synchronous reply to an inbound request."""

    success: bool
    message: str = ""
    kind: Optional[ErrorKind] = None
    data: dict[str, Any] = {}

    def __bool__(self) -> bool:
        return self.success

    @classmethod
    def ok(cls, message: str = "", **data: Any) -> "ActionResult":
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, error: RoomError) -> "ActionResult":
        return cls(success=False, message=error.reason, kind=error.kind)
