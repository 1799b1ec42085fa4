from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional

from .catalog_store import CatalogStore, ORDER_RECENCY
from .errors import PersistenceError
from .utils import truncate_text

logger = logging.getLogger("filmchat.context")

DEFAULT_CONTEXT_LIMIT = 10
OVERVIEW_CHARS = 300
NOTE_CHARS = 200


@dataclass
class CatalogSnapshot:
    """Prompt-sized projection of a catalog entry."""
    title: str
    overview: str
    rating: Optional[float]
    genres: List[str]
    personal_note: Optional[str]
    enthusiasm: int

    def as_prompt_dict(self) -> Dict[str, object]:
        return asdict(self)


@dataclass
class CatalogContext:
    """Recency-ordered catalog snapshot plus an availability flag."""
    entries: List[CatalogSnapshot] = field(default_factory=list)
    available: bool = True

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def top_picks(self, limit: int = 3, min_enthusiasm: int = 1) -> List[CatalogSnapshot]:
        """Purpose: Rank entries for "top picks" style summaries.
        Inputs/Outputs: Inputs are a limit and minimum enthusiasm; output is a ranked list.
        Side Effects / State: None.
        Dependencies: Relies on self.entries already being in recency order.
        Failure Modes: None; returns an empty list when nothing qualifies.
        If Removed: Rule-engine replies lose their enthusiasm ranking.
        Testing Notes: Equal enthusiasm keeps the more recent entry first.
        """
        # sorted() is stable, so recency order survives as the tie-break.
        eligible = [entry for entry in self.entries if entry.enthusiasm >= min_enthusiasm]
        ranked = sorted(eligible, key=lambda entry: entry.enthusiasm, reverse=True)
        return ranked[:limit]


def build_context(store: CatalogStore, limit: int = DEFAULT_CONTEXT_LIMIT) -> CatalogContext:
    """Purpose: Build the bounded catalog snapshot used to ground replies.
    Inputs/Outputs: Inputs are the store and an entry ceiling; output is a CatalogContext.
    Side Effects / State: Reads the store.
    Dependencies: Uses CatalogStore.find_catalog_entries and truncate_text.
    Failure Modes: Store errors return CatalogContext(available=False) instead of raising.
    If Removed: The generative prompt and the rule engine have no catalog to draw from.
    Testing Notes: A store that raises must yield available=False with no entries.
    """
    # Read the newest entries and project them into prompt-sized snapshots.
    try:
        entries = store.find_catalog_entries(limit=limit, order_by=ORDER_RECENCY)
    except (PersistenceError, OSError) as exc:
        logger.warning("step=context_assembly status=unavailable error=%s", exc)
        return CatalogContext(entries=[], available=False)

    snapshots = [
        CatalogSnapshot(
            title=entry.title,
            overview=truncate_text(entry.overview, OVERVIEW_CHARS),
            rating=entry.rating,
            genres=list(entry.genres),
            personal_note=truncate_text(entry.personal_note, NOTE_CHARS) or None,
            enthusiasm=entry.enthusiasm,
        )
        for entry in entries
    ]
    logger.info("step=context_assembly status=success entries=%d", len(snapshots))
    return CatalogContext(entries=snapshots, available=True)
