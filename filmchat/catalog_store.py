from __future__ import annotations

import json
import threading
import time
import uuid
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from pydantic import ValidationError as ModelValidationError

from .errors import PersistenceError
from .models import CatalogEntry, ChatTurn

ORDER_RECENCY = "recency"
ORDER_ENTHUSIASM = "enthusiasm"


class CatalogStore:
    """JSON-file storage for catalog entries and the chat turn audit log."""

    def __init__(self, path: Optional[Path] = None) -> None:
        """Purpose: Initialize the store and hydrate from disk if available.
        Inputs/Outputs: Input is an optional file path (None keeps data in memory); no return.
        Side Effects / State: Loads entries and turns into in-memory caches.
        Dependencies: Calls _load; relies on CatalogEntry/ChatTurn models.
        Failure Modes: Corrupt JSON raises PersistenceError on first access.
        If Removed: Catalog context, membership checks, and turn logging have no backing data.
        Testing Notes: Use a tmp_path file and verify entries survive a reload.
        """
        # Keep configuration and defer loading until first access.
        self._path = path
        self._lock = threading.Lock()
        self._entries: Dict[str, CatalogEntry] = {}
        self._turns: List[ChatTurn] = []
        self._loaded = False

    def _load(self) -> None:
        """Purpose: Load persisted catalog data from disk into memory.
        Inputs/Outputs: Reads from self._path; no return value.
        Side Effects / State: Populates _entries and _turns caches once.
        Dependencies: Uses json.loads and pydantic models for validation.
        Failure Modes: Unreadable file, bad JSON, or invalid records raise PersistenceError.
        If Removed: Previously stored catalog entries are never restored.
        Testing Notes: Corrupt JSON should raise PersistenceError, not JSONDecodeError.
        """
        # Read and decode persisted JSON if present.
        if self._loaded:
            return
        if self._path and self._path.exists():
            try:
                data = json.loads(self._path.read_text(encoding="utf-8"))
                entries = [CatalogEntry(**raw) for raw in data.get("entries", [])]
                turns = [ChatTurn(**raw) for raw in data.get("turns", [])]
            except (OSError, json.JSONDecodeError, ModelValidationError, AttributeError, TypeError) as exc:
                raise PersistenceError(f"cannot load catalog from {self._path}: {exc}") from exc
            self._entries = {entry.id: entry for entry in entries}
            self._turns = turns
        self._loaded = True

    def _persist(self) -> None:
        """Purpose: Write entries and turns to disk.
        Inputs/Outputs: Writes to self._path; no return value.
        Side Effects / State: Rewrites the JSON file with the full cache.
        Dependencies: Uses json.dumps and Path.write_text.
        Failure Modes: IO errors are re-raised as PersistenceError.
        If Removed: Added entries and logged turns are lost on restart.
        Testing Notes: Ensure the file round-trips through a fresh CatalogStore.
        """
        # Serialize current caches to disk for persistence.
        if not self._path:
            return
        payload = {
            "entries": [entry.model_dump() for entry in self._entries.values()],
            "turns": [turn.model_dump(mode="json") for turn in self._turns],
        }
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"cannot write catalog to {self._path}: {exc}") from exc

    def find_catalog_entries(self, limit: Optional[int] = None, order_by: str = ORDER_RECENCY) -> List[CatalogEntry]:
        """Purpose: Return catalog entries in the requested order.
        Inputs/Outputs: Inputs are an optional limit and order ("recency" or "enthusiasm");
            output is a list of CatalogEntry.
        Side Effects / State: Loads the backing file on first call.
        Dependencies: Uses _load and created_at/enthusiasm fields.
        Failure Modes: PersistenceError when the file cannot be read; ValueError on unknown order.
        If Removed: Context assembly and the movies listing have nothing to read.
        Testing Notes: Enthusiasm order must fall back to recency for ties.
        """
        # Recency first; a stable enthusiasm sort then keeps recency as tie-break.
        with self._lock:
            self._load()
            entries = sorted(self._entries.values(), key=lambda e: e.created_at, reverse=True)
        if order_by == ORDER_ENTHUSIASM:
            entries = sorted(entries, key=lambda e: e.enthusiasm, reverse=True)
        elif order_by != ORDER_RECENCY:
            raise ValueError(f"unknown order: {order_by}")
        if limit is not None:
            entries = entries[: max(limit, 0)]
        return entries

    def get_entry(self, key: str) -> Optional[CatalogEntry]:
        """Find an entry by internal id or by TMDB id."""
        with self._lock:
            self._load()
            entry = self._entries.get(key)
            if entry:
                return entry
            if key.isdigit():
                tmdb_id = int(key)
                for candidate in self._entries.values():
                    if candidate.tmdb_id == tmdb_id:
                        return candidate
        return None

    def add_entry(
        self,
        title: str,
        tmdb_id: Optional[int] = None,
        overview: str = "",
        rating: Optional[float] = None,
        genres: Optional[List[str]] = None,
        personal_note: Optional[str] = None,
        enthusiasm: int = 3,
        poster_path: Optional[str] = None,
        release_date: Optional[str] = None,
    ) -> CatalogEntry:
        """Purpose: Create and persist a new catalog entry.
        Inputs/Outputs: Inputs are the entry fields; output is the stored CatalogEntry.
        Side Effects / State: Mutates the cache and writes to disk.
        Dependencies: Uses CatalogEntry validation and _persist.
        Failure Modes: Invalid enthusiasm raises pydantic ValidationError; IO raises PersistenceError.
        If Removed: Discovered titles cannot join the collection.
        Testing Notes: Add an entry and verify it is newest in recency order.
        """
        with self._lock:
            self._load()
            created_at = time.time()
            latest = max((existing.created_at for existing in self._entries.values()), default=0.0)
            if created_at <= latest:
                # Keep creation order strict even within one clock tick.
                created_at = latest + 1e-6
            entry = CatalogEntry(
                id=uuid.uuid4().hex,
                tmdb_id=tmdb_id,
                title=title,
                overview=overview or "",
                rating=rating,
                genres=genres or [],
                personal_note=personal_note,
                enthusiasm=enthusiasm,
                poster_path=poster_path,
                release_date=release_date,
                created_at=created_at,
            )
            self._entries[entry.id] = entry
            self._persist()
        return entry

    def delete_entry(self, entry_id: str) -> bool:
        """Remove an entry by internal id; returns False when it does not exist."""
        with self._lock:
            self._load()
            if self._entries.pop(entry_id, None) is None:
                return False
            self._persist()
        return True

    def append_chat_turn(self, turn: ChatTurn) -> None:
        """Purpose: Append one chat exchange to the audit log.
        Inputs/Outputs: Input is a ChatTurn; no return value.
        Side Effects / State: Appends to _turns and writes to disk.
        Dependencies: Uses _persist.
        Failure Modes: PersistenceError on read or write failure.
        If Removed: Conversation history is not audited.
        Testing Notes: Append twice and verify order is preserved.
        """
        with self._lock:
            self._load()
            self._turns.append(turn)
            self._persist()

    def list_chat_turns(self) -> List[ChatTurn]:
        with self._lock:
            self._load()
            return list(self._turns)

    def check_membership(self, tmdb_ids: Iterable[int]) -> Dict[int, bool]:
        """Purpose: Report which TMDB ids are already in the catalog.
        Inputs/Outputs: Input is an iterable of TMDB ids; output maps each id to a bool.
        Side Effects / State: None beyond first-time load.
        Dependencies: Uses the in-memory entry cache.
        Failure Modes: PersistenceError when the file cannot be read.
        If Removed: UI cannot hide "add to collection" for existing titles.
        Testing Notes: Duplicate ids collapse into one key.
        """
        # Build the set of known ids once, then answer per requested id.
        with self._lock:
            self._load()
            known = {entry.tmdb_id for entry in self._entries.values() if entry.tmdb_id is not None}
        return {tmdb_id: tmdb_id in known for tmdb_id in tmdb_ids}
