"""Detail enrichment for a stored catalog entry.

The five TMDB lookups are independent, so they run concurrently. Each one degrades to
"unavailable" on its own; only the stored entry is required for a response.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional

from .catalog_store import CatalogStore
from .errors import FilmChatError
from .models import CatalogEntry, MovieDetails
from .tmdb_client import TmdbClient

logger = logging.getLogger("filmchat.details")

CAST_LIMIT = 10
CREW_LIMIT = 5
TRAILER_LIMIT = 3
SIMILAR_LIMIT = 8
CREW_JOBS = {"Director", "Producer", "Executive Producer", "Screenplay", "Writer"}
WATCH_REGION = "US"


class MovieDetailsService:
    """Merges a catalog entry with concurrently fetched TMDB details."""

    def __init__(self, store: CatalogStore, tmdb: TmdbClient, max_workers: int = 5) -> None:
        self._store = store
        self._tmdb = tmdb
        self._max_workers = max_workers

    def get_details(self, key: str) -> Optional[MovieDetails]:
        """Purpose: Build the detail view for one catalog entry.
        Inputs/Outputs: Input is an internal id or TMDB id; output is MovieDetails or
            None when the entry does not exist.
        Side Effects / State: Up to five concurrent TMDB requests.
        Dependencies: Uses CatalogStore.get_entry and TmdbClient detail endpoints.
        Failure Modes: Store errors propagate; each TMDB failure empties only its field.
        If Removed: The details endpoint can only show stored fields.
        Testing Notes: Make one fake endpoint raise and check the others still populate.
        """
        entry = self._store.get_entry(key)
        if entry is None:
            return None
        if not self._tmdb.configured or entry.tmdb_id is None:
            return _stored_only(entry)

        tmdb_id = entry.tmdb_id
        fetchers: Dict[str, Callable[[], Dict[str, Any]]] = {
            "details": lambda: self._tmdb.movie_details(tmdb_id),
            "credits": lambda: self._tmdb.movie_credits(tmdb_id),
            "providers": lambda: self._tmdb.watch_providers(tmdb_id),
            "videos": lambda: self._tmdb.videos(tmdb_id),
            "recommendations": lambda: self._tmdb.recommendations(tmdb_id),
        }
        fetched = self._fetch_all(tmdb_id, fetchers)
        return _merge(entry, fetched)

    def _fetch_all(self, tmdb_id: int, fetchers: Dict[str, Callable[[], Dict[str, Any]]]) -> Dict[str, Optional[Dict[str, Any]]]:
        # Issue every lookup at once; collect failures as None.
        results: Dict[str, Optional[Dict[str, Any]]] = {}
        with ThreadPoolExecutor(max_workers=self._max_workers) as pool:
            futures = {name: pool.submit(fn) for name, fn in fetchers.items()}
            for name, future in futures.items():
                try:
                    results[name] = future.result()
                except FilmChatError as exc:
                    logger.warning("details tmdb_id=%s field=%s status=unavailable error=%s", tmdb_id, name, exc)
                    results[name] = None
        return results


def _stored_only(entry: CatalogEntry) -> MovieDetails:
    return MovieDetails(
        id=entry.tmdb_id or entry.id,
        title=entry.title,
        overview=entry.overview or "No overview available",
        release_date=entry.release_date or "",
        poster_path=entry.poster_path or "",
        vote_average=entry.rating or 0.0,
        personal_note=entry.personal_note,
        enthusiasm=entry.enthusiasm,
    )


def _merge(entry: CatalogEntry, fetched: Dict[str, Optional[Dict[str, Any]]]) -> MovieDetails:
    """Stored values win over TMDB values; missing TMDB fields stay empty."""
    details = _as_dict(fetched.get("details"))
    credits = _as_dict(fetched.get("credits"))
    providers = _as_dict(fetched.get("providers"))
    videos = _as_dict(fetched.get("videos"))
    recommendations = _as_dict(fetched.get("recommendations"))

    crew = [person for person in _records(credits.get("crew")) if person.get("job") in CREW_JOBS]
    trailers = [
        video
        for video in _records(videos.get("results"))
        if video.get("type") == "Trailer" and video.get("site") == "YouTube"
    ]
    genres = _records(details.get("genres"))
    runtime = details.get("runtime")
    return MovieDetails(
        id=entry.tmdb_id or entry.id,
        title=entry.title,
        overview=entry.overview or _text(details.get("overview")) or "No overview available",
        release_date=entry.release_date or _text(details.get("release_date")) or "",
        poster_path=entry.poster_path or _text(details.get("poster_path")) or "",
        backdrop_path=_text(details.get("backdrop_path")),
        vote_average=entry.rating or _number(details.get("vote_average")) or 0.0,
        runtime=runtime if isinstance(runtime, int) else None,
        genres=genres,
        cast=_records(credits.get("cast"))[:CAST_LIMIT],
        crew=crew[:CREW_LIMIT],
        personal_note=entry.personal_note,
        enthusiasm=entry.enthusiasm,
        streaming_providers=_as_dict(_as_dict(providers.get("results")).get(WATCH_REGION)) or None,
        trailers=trailers[:TRAILER_LIMIT],
        similar_movies=_records(recommendations.get("results"))[:SIMILAR_LIMIT],
    )


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _number(value: Any) -> Optional[float]:
    return float(value) if isinstance(value, (int, float)) and not isinstance(value, bool) else None


def _records(value: Any) -> List[Dict[str, Any]]:
    """Dict items of a TMDB list field; anything malformed is dropped."""
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]
