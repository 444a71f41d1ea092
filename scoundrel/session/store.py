"""
Session Store - Where sessions live between actions.

The engine never keeps sessions itself; it is handed a store. Two are
provided:
- InMemorySessionStore: per-instance dicts, for tests and single-process use
- FileSessionStore: one JSON document per session in a directory

Both keep the serialized form only, so a loaded session is always a
fresh object and its checksum is verified against what was written.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any
import asyncio
import json
import re
import uuid

from ..errors import CorruptSession
from .models import GameSession, HistoryEntry

_SESSION_ID = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def new_session_id() -> str:
    return uuid.uuid4().hex


def decode_session(session_id: str, raw: str | dict[str, Any]) -> GameSession:
    """
    Stored form to GameSession.

    A document that does not decode is corruption, not an I/O failure.
    """
    try:
        data = json.loads(raw) if isinstance(raw, str) else raw
        return GameSession.from_dict(data)
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        raise CorruptSession(f"Stored session {session_id} is corrupt: {e}") from e


class SessionStore(ABC):
    """
    Persistence contract consumed by the SessionManager.

    Implementations raise whatever their backend raises; the manager
    wraps failures in StoreError. A document that is present but cannot
    be decoded raises CorruptSession (see decode_session).
    """

    @abstractmethod
    async def create(self, session: GameSession) -> str:
        """Persist a new session and return its assigned id."""

    @abstractmethod
    async def load(self, session_id: str) -> GameSession | None:
        ...

    @abstractmethod
    async def save(self, session: GameSession) -> None:
        ...

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        """Remove the session and its history. Missing ids are ignored."""

    @abstractmethod
    async def list_ids(self) -> list[str]:
        ...

    @abstractmethod
    async def append_history(self, entry: HistoryEntry) -> None:
        ...

    @abstractmethod
    async def load_history(self, session_id: str) -> list[HistoryEntry]:
        ...


class InMemorySessionStore(SessionStore):
    """Sessions held as serialized dicts on this instance."""

    def __init__(self):
        self._sessions: dict[str, dict[str, Any]] = {}
        self._history: dict[str, list[dict[str, Any]]] = {}

    async def create(self, session: GameSession) -> str:
        session_id = session.session_id or new_session_id()
        self._sessions[session_id] = session._copy_with(session_id=session_id).to_dict()
        return session_id

    async def load(self, session_id: str) -> GameSession | None:
        data = self._sessions.get(session_id)
        if data is None:
            return None
        return decode_session(session_id, json.loads(json.dumps(data)))

    async def save(self, session: GameSession) -> None:
        self._sessions[session.session_id] = session.to_dict()

    async def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)
        self._history.pop(session_id, None)

    async def list_ids(self) -> list[str]:
        return list(self._sessions)

    async def append_history(self, entry: HistoryEntry) -> None:
        self._history.setdefault(entry.session_id, []).append(entry.to_dict())

    async def load_history(self, session_id: str) -> list[HistoryEntry]:
        return [HistoryEntry.from_dict(e) for e in self._history.get(session_id, [])]


class FileSessionStore(SessionStore):
    """
    File-based session store.

    Layout:
        <root>/<session_id>.json           current session document
        <root>/<session_id>.history.jsonl  one history entry per line

    File I/O runs in a worker thread so the event loop is never blocked.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _session_path(self, session_id: str) -> Path | None:
        if not _SESSION_ID.match(session_id):
            return None
        return self.root / f"{session_id}.json"

    def _history_path(self, session_id: str) -> Path | None:
        if not _SESSION_ID.match(session_id):
            return None
        return self.root / f"{session_id}.history.jsonl"

    def _write(self, session: GameSession) -> None:
        path = self._session_path(session.session_id)
        if path is None:
            raise ValueError(f"Invalid session id: {session.session_id!r}")
        # Write then rename so a crash never leaves a half-written document
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(session.to_dict()), encoding="utf-8")
        tmp.replace(path)

    def _read(self, session_id: str) -> GameSession | None:
        path = self._session_path(session_id)
        if path is None or not path.exists():
            return None
        return decode_session(session_id, path.read_text(encoding="utf-8"))

    def _remove(self, session_id: str) -> None:
        for path in (self._session_path(session_id), self._history_path(session_id)):
            if path is not None:
                path.unlink(missing_ok=True)

    def _append(self, entry: HistoryEntry) -> None:
        path = self._history_path(entry.session_id)
        if path is None:
            raise ValueError(f"Invalid session id: {entry.session_id!r}")
        with path.open("a", encoding="utf-8") as f:
            f.write(json.dumps(entry.to_dict()) + "\n")

    def _read_history(self, session_id: str) -> list[HistoryEntry]:
        path = self._history_path(session_id)
        if path is None or not path.exists():
            return []
        with path.open("r", encoding="utf-8") as f:
            return [HistoryEntry.from_dict(json.loads(line)) for line in f if line.strip()]

    async def create(self, session: GameSession) -> str:
        session_id = session.session_id or new_session_id()
        await asyncio.to_thread(self._write, session._copy_with(session_id=session_id))
        return session_id

    async def load(self, session_id: str) -> GameSession | None:
        return await asyncio.to_thread(self._read, session_id)

    async def save(self, session: GameSession) -> None:
        await asyncio.to_thread(self._write, session)

    async def delete(self, session_id: str) -> None:
        await asyncio.to_thread(self._remove, session_id)

    def _list(self) -> list[str]:
        return [p.name[: -len(".json")] for p in self.root.glob("*.json")]

    async def list_ids(self) -> list[str]:
        return await asyncio.to_thread(self._list)

    async def append_history(self, entry: HistoryEntry) -> None:
        await asyncio.to_thread(self._append, entry)

    async def load_history(self, session_id: str) -> list[HistoryEntry]:
        return await asyncio.to_thread(self._read_history, session_id)
