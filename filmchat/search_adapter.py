"""External search adapter over the TMDB client.

Two modes feed the chat pipeline:
    Similarity mode: resolve a reference title, then ask TMDB for titles similar to it,
        falling back to the popular list when no reference title is present.
    Exact mode: pull an explicit title query out of "show me X" / "add X" phrasing and
        return the best few direct search hits.

Both modes make a single attempt per outbound call and degrade to an empty list on any
upstream or configuration failure.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .entity_extractor import extract_title
from .errors import ConfigurationError, UpstreamError
from .models import SearchCandidate
from .rule_engine import GENRE_BUCKETS
from .tmdb_client import TmdbClient

logger = logging.getLogger("filmchat.search")

SIMILAR_LIMIT = 6
EXACT_LIMIT = 3
MIN_SIMILAR_RATING = 6.0

SIMILAR_CUE_RE = re.compile(
    r"\b(similar|(?:movies?|films?|shows?|something|anything|stuff)\s+like|popular|trending)\b",
    re.IGNORECASE,
)
SIMILAR_TITLE_PATTERNS = [
    re.compile(r"\bsimilar\s+to\s+(.+)", re.IGNORECASE),
    re.compile(r"\b(?:movies?|films?|shows?|something|anything|stuff)\s+like\s+(.+)", re.IGNORECASE),
    re.compile(r"\blike\s+(.+)", re.IGNORECASE),
]
EXACT_QUERY_PATTERNS = [
    re.compile(r"\bshow\s+me\s+(.+)", re.IGNORECASE),
    re.compile(r"^\s*(?:(?:can|could)\s+you\s+|please\s+)?add\s+(.+)", re.IGNORECASE),
    re.compile(r"\bdisplay\s+(.+)", re.IGNORECASE),
    re.compile(r"^\s*(?:(?:can|could)\s+you\s+|please\s+)?get\s+(?:me\s+)?(.+)", re.IGNORECASE),
]
TRAILING_NOISE_RE = re.compile(
    r"(?:\s+(?:to\s+(?:the|my|our)\s+(?:collection|catalog|list)|movies?|films?|please|for me))+\s*$",
    re.IGNORECASE,
)
LEADING_NOISE_RE = re.compile(r"^(?:the\s+(?:movie|film)\s+)", re.IGNORECASE)
GENERIC_QUERY_RE = re.compile(
    r"^(?:something|anything|some\s+(?:movies?|films?|good|great|new)|movies?|films?|recommendations?|suggestions?)\b",
    re.IGNORECASE,
)
PRONOUN_REFERENCE_RE = re.compile(
    r"^(?:it|that|this|them|those|these)(?:\s+(?:one|movie|film|show))?$",
    re.IGNORECASE,
)
GENRE_KEYWORDS = sorted(
    {keyword for bucket in GENRE_BUCKETS for keyword in bucket.message_keywords},
    key=len,
    reverse=True,
)
# A bare genre or mood, optionally led by an article or quantifier: "a horror", "some scary".
GENRE_QUERY_RE = re.compile(
    r"^(?:(?:a|an|some|any|another|good|great|new)\s+)*(?:"
    + "|".join(re.escape(keyword).replace(r"\ ", r"\s+") for keyword in GENRE_KEYWORDS)
    + r")(?:\s+(?:ones?|stuff|picks?))?$",
    re.IGNORECASE,
)
QUOTE_CHARS = "\"'“”‘’"


@dataclass
class SearchOutcome:
    """Candidates from one search plus the mode and anchor that produced them."""
    mode: str = ""
    candidates: List[SearchCandidate] = field(default_factory=list)
    reference_title: Optional[str] = None
    anchor_title: Optional[str] = None


def to_candidate(raw: Dict[str, Any]) -> Optional[SearchCandidate]:
    """Convert a raw TMDB result into a SearchCandidate; None when id/title are missing."""
    external_id = raw.get("id")
    title = raw.get("title") or raw.get("name")
    if external_id is None or not title:
        return None
    try:
        rating = float(raw.get("vote_average") or 0.0)
        external_id = int(external_id)
    except (TypeError, ValueError):
        return None
    return SearchCandidate(
        external_id=external_id,
        title=str(title),
        overview=str(raw.get("overview") or ""),
        poster_ref=raw.get("poster_path") or None,
        rating=rating,
        release_date=raw.get("release_date") or raw.get("first_air_date") or None,
        genre_ids=[int(gid) for gid in raw.get("genre_ids") or [] if isinstance(gid, int)],
    )


def _clean_query(text: str) -> str:
    # Trim punctuation, quotes, and filler words around an extracted title.
    cleaned = text.strip().rstrip("?!.,;:").strip().strip(QUOTE_CHARS).strip()
    cleaned = TRAILING_NOISE_RE.sub("", cleaned).strip()
    cleaned = LEADING_NOISE_RE.sub("", cleaned).strip()
    return cleaned.rstrip("?!.,;:").strip().strip(QUOTE_CHARS).strip()


def _is_generic_query(query: str) -> bool:
    return bool(
        GENERIC_QUERY_RE.match(query) or PRONOUN_REFERENCE_RE.match(query) or GENRE_QUERY_RE.match(query)
    )


def extract_reference_title(utterance: str) -> Optional[str]:
    """Return X from "similar to X" / "like X", or None.

    A pronoun reference ("anything like it?") resolves to the title the utterance
    names elsewhere, e.g. "I just watched Dune".
    """
    pronoun_reference = False
    for pattern in SIMILAR_TITLE_PATTERNS:
        match = pattern.search(utterance or "")
        if not match:
            continue
        title = _clean_query(match.group(1))
        if title and PRONOUN_REFERENCE_RE.match(title):
            pronoun_reference = True
            continue
        if title and not _is_generic_query(title):
            return title
    return extract_title(utterance) if pronoun_reference else None


def extract_exact_query(utterance: str) -> Optional[str]:
    """Return X from "show me X" / "add X" / "display X" / "get X", or None."""
    for pattern in EXACT_QUERY_PATTERNS:
        match = pattern.search(utterance or "")
        if not match:
            continue
        query = _clean_query(match.group(1))
        if query and not _is_generic_query(query):
            return query
    return None


def wants_similar(utterance: str) -> bool:
    return bool(SIMILAR_CUE_RE.search(utterance or ""))


def wants_exact(utterance: str) -> bool:
    return extract_exact_query(utterance) is not None


def _passes_similar_filter(candidate: SearchCandidate) -> bool:
    return candidate.rating > MIN_SIMILAR_RATING and bool(candidate.overview.strip())


def _passes_exact_filter(candidate: SearchCandidate) -> bool:
    return bool(candidate.overview.strip()) and bool((candidate.poster_ref or "").strip())


class SearchAdapter:
    """Similarity and exact-title search against the metadata provider."""

    def __init__(self, tmdb: TmdbClient) -> None:
        self._tmdb = tmdb

    @property
    def configured(self) -> bool:
        return self._tmdb.configured

    def _call(self, label: str, fn: Callable[[], List[Dict[str, Any]]]) -> Optional[List[Dict[str, Any]]]:
        """Purpose: Run one TMDB call and convert failures into None.
        Inputs/Outputs: Inputs are a log label and a zero-arg callable; output is raw
            results or None on failure.
        Side Effects / State: One outbound request via the callable.
        Dependencies: TmdbClient raising ConfigurationError/UpstreamError.
        Failure Modes: None propagate; failures are logged at warning level.
        If Removed: A TMDB outage would surface as a 500 from the chat endpoint.
        Testing Notes: Make the fake client raise UpstreamError and expect None.
        """
        try:
            return fn()
        except ConfigurationError as exc:
            logger.info("search call=%s status=unconfigured detail=%s", label, exc)
        except UpstreamError as exc:
            logger.warning("search call=%s status=failed error=%s", label, exc)
        return None

    def find_similar(self, utterance: str) -> List[SearchCandidate]:
        return self.search_similar(utterance).candidates

    def search_similar(self, utterance: str) -> SearchOutcome:
        """Purpose: Find titles similar to a reference title in the utterance.
        Inputs/Outputs: Input is the raw utterance; output is a SearchOutcome whose
            candidates all have rating > 6.0 and an overview, capped at 6.
        Side Effects / State: One or two outbound TMDB requests.
        Dependencies: Uses extract_reference_title and TmdbClient search/similar/popular.
        Failure Modes: Any upstream failure yields an empty candidate list.
        If Removed: "Something like X" requests can only be answered from the catalog.
        Testing Notes: No reference title should hit popular() and never search().
        """
        # Without a reference title fall back to the popular list.
        reference = extract_reference_title(utterance)
        if not reference:
            raw = self._call("popular", self._tmdb.popular) or []
            candidates = self._filter(raw, _passes_similar_filter, SIMILAR_LIMIT)
            logger.info("search mode=popular results=%d", len(candidates))
            return SearchOutcome(mode="popular", candidates=candidates)

        outcome = SearchOutcome(mode="similar", reference_title=reference)
        hits = self._call("search", lambda: self._tmdb.search(reference))
        if not hits:
            logger.info("search mode=similar reference=%s anchor=none", reference)
            return outcome

        anchor = to_candidate(hits[0])
        if anchor is None:
            return outcome
        outcome.anchor_title = anchor.title
        raw = self._call("similar", lambda: self._tmdb.similar(anchor.external_id)) or []
        outcome.candidates = self._filter(raw, _passes_similar_filter, SIMILAR_LIMIT)
        logger.info(
            "search mode=similar reference=%s anchor=%s results=%d",
            reference,
            anchor.external_id,
            len(outcome.candidates),
        )
        return outcome

    def find_exact(self, query: str) -> List[SearchCandidate]:
        return self.search_exact(query).candidates

    def search_exact(self, query: str) -> SearchOutcome:
        """Purpose: Look up an explicitly requested title.
        Inputs/Outputs: Input is the raw utterance; output is a SearchOutcome whose
            candidates all have an overview and a poster, capped at 3.
        Side Effects / State: One outbound TMDB request.
        Dependencies: Uses extract_exact_query and TmdbClient.search.
        Failure Modes: Empty extraction or failed search yields an empty list.
        If Removed: "Show me X" / "add X" cannot surface addable candidates.
        Testing Notes: Verify "add Dune to the collection" searches for "Dune".
        """
        extracted = extract_exact_query(query)
        outcome = SearchOutcome(mode="exact", reference_title=extracted)
        if not extracted:
            return outcome
        raw = self._call("search", lambda: self._tmdb.search(extracted)) or []
        outcome.candidates = self._filter(raw, _passes_exact_filter, EXACT_LIMIT)
        logger.info("search mode=exact query=%s results=%d", extracted, len(outcome.candidates))
        return outcome

    @staticmethod
    def _filter(
        raw: List[Dict[str, Any]],
        predicate: Callable[[SearchCandidate], bool],
        limit: int,
    ) -> List[SearchCandidate]:
        candidates: List[SearchCandidate] = []
        for item in raw:
            if not isinstance(item, dict):
                continue
            candidate = to_candidate(item)
            if candidate is None or not predicate(candidate):
                continue
            candidates.append(candidate)
            if len(candidates) >= limit:
                break
        return candidates
