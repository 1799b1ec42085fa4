from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .catalog_store import CatalogStore
from .models import CatalogEntry
from .tmdb_client import TmdbClient

logger = logging.getLogger("filmchat.collection")

DISCOVERY_ENTHUSIASM = 3
DISCOVERY_NOTE = "Added from similar movies discovery"


@dataclass
class AddOutcome:
    """Result of adding a TMDB title to the collection."""
    entry: Optional[CatalogEntry]
    message: str
    already_exists: bool = False

    @property
    def success(self) -> bool:
        return self.entry is not None and not self.already_exists


class CollectionService:
    """Add and remove catalog entries driven by TMDB ids."""

    def __init__(self, store: CatalogStore, tmdb: TmdbClient) -> None:
        self._store = store
        self._tmdb = tmdb

    def add_from_tmdb(self, tmdb_id: int) -> AddOutcome:
        """Purpose: Store a TMDB title as a new catalog entry.
        Inputs/Outputs: Input is a TMDB id; output is an AddOutcome.
        Side Effects / State: One TMDB details request and one store write.
        Dependencies: Uses CatalogStore.check_membership/add_entry and TmdbClient.movie_details.
        Failure Modes: ConfigurationError/UpstreamError/PersistenceError propagate so the
            HTTP layer can map them to status codes.
        If Removed: Search candidates cannot be turned into catalog entries.
        Testing Notes: A second add of the same id reports already_exists.
        """
        # Duplicate check first so TMDB is not called for known titles.
        if self._store.check_membership([tmdb_id]).get(tmdb_id):
            existing = self._store.get_entry(str(tmdb_id))
            return AddOutcome(entry=existing, message="Movie already in collection", already_exists=True)

        details = self._tmdb.movie_details(tmdb_id)
        entry = self._store.add_entry(
            title=details.get("title") or details.get("name") or f"TMDB {tmdb_id}",
            tmdb_id=int(details.get("id") or tmdb_id),
            overview=details.get("overview") or "",
            rating=details.get("vote_average") or None,
            genres=[genre.get("name") for genre in details.get("genres") or [] if genre.get("name")],
            personal_note=DISCOVERY_NOTE,
            enthusiasm=DISCOVERY_ENTHUSIASM,
            poster_path=details.get("poster_path") or None,
            release_date=details.get("release_date") or None,
        )
        logger.info("collection action=add title=%s tmdb_id=%s", entry.title, tmdb_id)
        return AddOutcome(entry=entry, message=f'"{entry.title}" added to your collection!')

    def remove(self, key: str) -> Optional[CatalogEntry]:
        """Delete by internal id or TMDB id; returns the removed entry or None."""
        entry = self._store.get_entry(key)
        if entry is None:
            return None
        self._store.delete_entry(entry.id)
        logger.info("collection action=delete title=%s id=%s", entry.title, entry.id)
        return entry
