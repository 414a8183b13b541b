"""Engine package - room state, night orchestration and the inbound facade."""

from .night_action_store import NightActionStore, DayResult
from .night_action_resolver import NightActionResolver
from .room_registry import Room, RoomRegistry, Seat
from .role_pool import RolePool
from .orphan_tracker import OrphanTracker, OrphanChain, OrphanLink, ChainNode
from .outbox import Outbox, Delivery, Transport
from .timers import TimerScheduler, TimerHandle, AsyncioTimerScheduler
from .session_manager import SessionManager
from .night_scheduler import NightScheduler, NightStepSpec, NIGHT_SEQUENCE, CONVERGENCE_PRIORITY
from .game_server import GameServer

__all__ = [
    "NightActionStore",
    "DayResult",
    "NightActionResolver",
    "Room",
    "RoomRegistry",
    "Seat",
    "RolePool",
    "OrphanTracker",
    "OrphanChain",
    "OrphanLink",
    "ChainNode",
    "Outbox",
    "Delivery",
    "Transport",
    "TimerScheduler",
    "TimerHandle",
    "AsyncioTimerScheduler",
    "SessionManager",
    "NightScheduler",
    "NightStepSpec",
    "NIGHT_SEQUENCE",
    "CONVERGENCE_PRIORITY",
    "GameServer",
]
