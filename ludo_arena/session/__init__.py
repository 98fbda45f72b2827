"""
Session Module - Rooms and real-time turn orchestration.

A session represents one room:
- Created when the first client connects or creates it
- Owns one TurnOrchestrator, the only writer of the room's state
- Dropped when it is idle and no game is running

Sessions are EPHEMERAL: no persistence to a database.
"""

from .manager import SessionManager, Session, SessionState
from .orchestrator import TurnOrchestrator
from .scheduler import Scheduler, AsyncioScheduler

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "TurnOrchestrator",
    "Scheduler",
    "AsyncioScheduler",
]
