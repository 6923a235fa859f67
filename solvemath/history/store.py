"""User-scoped, append-only problem history."""

from __future__ import annotations

import hashlib
import json
import threading
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from solvemath.utils.config_loader import HistorySettings


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def _clamp_limit(limit: int) -> int:
    return max(1, min(int(limit), 100))


class HistoryItemNotFoundError(KeyError):
    """Raised when a history item does not exist for the requesting user."""


@dataclass
class HistoryItem:
    id: str
    problem: str
    answer: str
    category: str
    created_at: str
    user_id: str

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "HistoryItem":
        return cls(
            id=str(payload["id"]),
            problem=str(payload.get("problem", "")),
            answer=str(payload.get("answer", "")),
            category=str(payload.get("category", "")),
            created_at=str(payload.get("created_at", "")),
            user_id=str(payload["user_id"]),
        )


class HistoryStore:
    """Base interface for history backends.

    Rows are inserted and deleted, never updated. Listing is newest first.
    """

    def add(self, user_id: str, problem: str, answer: str, category: str) -> HistoryItem:
        raise NotImplementedError

    def list_recent(self, user_id: str, limit: int = 50) -> List[HistoryItem]:
        raise NotImplementedError

    def delete(self, user_id: str, item_id: str) -> None:
        raise NotImplementedError

    @staticmethod
    def _new_item(user_id: str, problem: str, answer: str, category: str) -> HistoryItem:
        return HistoryItem(
            id=uuid.uuid4().hex,
            problem=problem,
            answer=answer,
            category=category,
            created_at=_utc_now_iso(),
            user_id=user_id,
        )


class InMemoryHistoryStore(HistoryStore):
    """Single-process store, lost on restart."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: Dict[str, List[HistoryItem]] = {}

    def add(self, user_id: str, problem: str, answer: str, category: str) -> HistoryItem:
        item = self._new_item(user_id, problem, answer, category)
        with self._lock:
            self._items.setdefault(user_id, []).append(item)
        return item

    def list_recent(self, user_id: str, limit: int = 50) -> List[HistoryItem]:
        with self._lock:
            items = list(self._items.get(user_id, []))
        items.reverse()
        return items[: _clamp_limit(limit)]

    def delete(self, user_id: str, item_id: str) -> None:
        with self._lock:
            items = self._items.get(user_id, [])
            for index, item in enumerate(items):
                if item.id == item_id:
                    del items[index]
                    return
        raise HistoryItemNotFoundError(item_id)


class JsonFileHistoryStore(HistoryStore):
    """File-based store keeping one JSON document per user.

    Files are named by the SHA-256 digest of the user id so distinct ids never
    share a document.
    """

    def __init__(self, directory: str) -> None:
        self.base = Path(directory)
        self.base.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _path(self, user_id: str) -> Path:
        digest = hashlib.sha256(user_id.encode("utf-8")).hexdigest()
        return self.base / "{}.json".format(digest)

    def _read(self, user_id: str) -> List[HistoryItem]:
        path = self._path(user_id)
        if not path.exists():
            return []
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        return [HistoryItem.from_dict(row) for row in payload if row.get("user_id") == user_id]

    def _write(self, user_id: str, items: List[HistoryItem]) -> None:
        path = self._path(user_id)
        with path.open("w", encoding="utf-8") as handle:
            json.dump([item.to_dict() for item in items], handle, ensure_ascii=False, indent=2)

    def add(self, user_id: str, problem: str, answer: str, category: str) -> HistoryItem:
        item = self._new_item(user_id, problem, answer, category)
        with self._lock:
            items = self._read(user_id)
            items.append(item)
            self._write(user_id, items)
        return item

    def list_recent(self, user_id: str, limit: int = 50) -> List[HistoryItem]:
        with self._lock:
            items = self._read(user_id)
        items.reverse()
        return items[: _clamp_limit(limit)]

    def delete(self, user_id: str, item_id: str) -> None:
        with self._lock:
            items = self._read(user_id)
            remaining = [item for item in items if item.id != item_id]
            if len(remaining) == len(items):
                raise HistoryItemNotFoundError(item_id)
            self._write(user_id, remaining)


def build_history_store(settings: HistorySettings) -> HistoryStore:
    """Creates the history backend selected in configuration."""
    if settings.backend == "file":
        return JsonFileHistoryStore(settings.directory)
    if settings.backend == "memory":
        return InMemoryHistoryStore()
    raise ValueError("Unsupported history backend: {}".format(settings.backend))
