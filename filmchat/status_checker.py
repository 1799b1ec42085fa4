from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from .catalog_store import CatalogStore
from .errors import PersistenceError
from .models import SearchCandidate

logger = logging.getLogger("filmchat.status")


class StatusChecker:
    """Batch collection-membership lookup for search candidates."""

    def __init__(self, store: CatalogStore) -> None:
        self._store = store

    def check_membership(self, ids: Iterable[int]) -> Dict[int, bool]:
        """Purpose: Map each TMDB id to whether it is already in the collection.
        Inputs/Outputs: Input is a list of TMDB ids; output has exactly one key per distinct id.
        Side Effects / State: One store read; nothing is cached across calls.
        Dependencies: Uses CatalogStore.check_membership.
        Failure Modes: Store errors are logged and an empty map is returned.
        If Removed: Search cards offer "add" for titles that are already stored.
        Testing Notes: Three ids in, three keys out; a raising store yields {}.
        """
        requested: List[int] = list(ids)
        if not requested:
            return {}
        try:
            membership = self._store.check_membership(requested)
        except (PersistenceError, OSError) as exc:
            logger.warning("status_check ids=%d status=failed error=%s", len(requested), exc)
            return {}
        return {tmdb_id: bool(membership.get(tmdb_id, False)) for tmdb_id in requested}

    def annotate(self, candidates: List[SearchCandidate]) -> List[SearchCandidate]:
        """Set in_collection on each candidate; unknown ids stay None."""
        membership = self.check_membership(candidate.external_id for candidate in candidates)
        for candidate in candidates:
            candidate.in_collection = membership.get(candidate.external_id)
        return candidates
