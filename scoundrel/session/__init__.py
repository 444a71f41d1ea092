"""
Session Module - The lifecycle of one game.

A session represents one play-through:
- Created when a player starts a game
- Advanced only through SessionManager.handle_action
- Destroyed on inactivity timeout, integrity violation, or by the player

Sessions live in an injected SessionStore, never in a process-wide map,
so several engine instances can share one store.
"""

from .models import GameSession, HistoryEntry
from .store import FileSessionStore, InMemorySessionStore, SessionStore
from .locks import KeyedLock
from .manager import SessionManager

__all__ = [
    "GameSession",
    "HistoryEntry",
    "SessionStore",
    "InMemorySessionStore",
    "FileSessionStore",
    "KeyedLock",
    "SessionManager",
]
