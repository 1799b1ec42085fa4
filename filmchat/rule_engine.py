"""Deterministic keyword-bucketed recommendations over the catalog snapshot.

Used when the generative service is unconfigured or failed and no search candidates
exist. Every branch returns a conversational sentence; nothing here performs I/O.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .context_assembler import CatalogContext, CatalogSnapshot
from .utils import normalize_text, quote_titles

CATALOG_UNAVAILABLE_REPLY = (
    "I'm having trouble connecting to the movie database. Please check the Movies page "
    "to see if data is loaded, or try again in a moment."
)
EMPTY_CATALOG_REPLY = (
    "I don't have any movies loaded yet! Add a few titles to the collection first, "
    "then ask me again for a recommendation."
)
GENERAL_REQUEST_RE = re.compile(r"\b(recommend|suggest|watch|good)\b")
TOP_PICK_MIN_ENTHUSIASM = 4


@dataclass(frozen=True)
class GenreBucket:
    """Keyword bucket mapping message cues to catalog match heuristics."""
    name: str
    message_keywords: Tuple[str, ...]
    title_keywords: Tuple[str, ...]
    overview_keywords: Tuple[str, ...]
    genre_tags: Tuple[str, ...]
    max_titles: int = 1
    note_prefix: str = " "
    single_template: str = 'For {label}, try "{title}"!{note}{rating}'
    multi_template: str = "For {label}, I'd suggest {titles}. All great picks from the collection!"
    label: str = ""

    def matches_message(self, normalized: str) -> bool:
        return any(re.search(rf"\b{re.escape(keyword)}\b", normalized) for keyword in self.message_keywords)

    def matches_entry(self, entry: CatalogSnapshot) -> bool:
        """Title, overview, or genre-tag heuristics; any one is enough."""
        title = entry.title.lower()
        if any(keyword in title for keyword in self.title_keywords):
            return True
        overview = (entry.overview or "").lower()
        if any(re.search(rf"\b{re.escape(keyword)}", overview) for keyword in self.overview_keywords):
            return True
        for genre in entry.genres:
            tag = str(genre).strip().lower()
            if tag in self.genre_tags or any(name in tag for name in self.genre_tags if not name.isdigit()):
                return True
        return False


GENRE_BUCKETS: List[GenreBucket] = [
    GenreBucket(
        name="sci-fi",
        label="sci-fi",
        message_keywords=("sci-fi", "sci fi", "scifi", "science fiction", "space", "ai",
                          "artificial intelligence", "future", "futuristic"),
        title_keywords=("inception", "interstellar", "matrix", "blade runner", "alien", "star"),
        overview_keywords=("space", "future", "alien", "technology", "artificial", "robot", "cyber"),
        genre_tags=("878", "science fiction", "sci-fi"),
        max_titles=2,
        note_prefix=" - ",
        single_template='Perfect! For sci-fi, I recommend "{title}"{note}{rating}. Sound interesting?',
        multi_template="Great choice! For sci-fi, I'd suggest {titles}. Both are excellent picks from the collection!",
    ),
    GenreBucket(
        name="horror",
        label="something scary",
        message_keywords=("horror", "scary", "thriller", "suspense", "creepy"),
        title_keywords=("fresh", "horror", "nightmare", "dead"),
        overview_keywords=("horror", "scary", "terror", "killer", "murder"),
        genre_tags=("27", "53", "horror", "thriller"),
    ),
    GenreBucket(
        name="comedy",
        label="a good laugh",
        message_keywords=("comedy", "comedies", "funny", "laugh", "humor", "humour"),
        title_keywords=("comedy", "funny"),
        overview_keywords=("comedy", "funny", "humor", "laugh"),
        genre_tags=("35", "comedy"),
        single_template='For a good laugh, check out "{title}"!{note}{rating}',
    ),
    GenreBucket(
        name="action",
        label="action",
        message_keywords=("action", "explosions", "adrenaline", "fight", "heist"),
        title_keywords=("mission", "fury", "die hard", "john wick"),
        overview_keywords=("heist", "mercenary", "assassin", "explosive", "chase"),
        genre_tags=("28", "action", "adventure"),
    ),
    GenreBucket(
        name="romance",
        label="something romantic",
        message_keywords=("romance", "romantic", "love story", "date night"),
        title_keywords=("love",),
        overview_keywords=("romance", "falls in love", "love story", "relationship"),
        genre_tags=("10749", "romance"),
    ),
    GenreBucket(
        name="drama",
        label="a good drama",
        message_keywords=("drama", "emotional", "tearjerker", "moving"),
        title_keywords=(),
        overview_keywords=("grief", "family", "struggle", "drama"),
        genre_tags=("18", "drama"),
    ),
    GenreBucket(
        name="animation",
        label="something animated",
        message_keywords=("animated", "animation", "cartoon", "anime", "pixar", "ghibli"),
        title_keywords=(),
        overview_keywords=("animated",),
        genre_tags=("16", "animation"),
    ),
]


def _note_suffix(entry: CatalogSnapshot, prefix: str = " ") -> str:
    return f"{prefix}{entry.personal_note}" if entry.personal_note else ""


def _rating_suffix(entry: CatalogSnapshot) -> str:
    return f" ({entry.rating:g}/10)" if entry.rating else ""


def _rank(entries: Sequence[CatalogSnapshot]) -> List[CatalogSnapshot]:
    return sorted(entries, key=lambda entry: entry.enthusiasm, reverse=True)


def _bucket_reply(bucket: GenreBucket, entries: Sequence[CatalogSnapshot]) -> Optional[str]:
    matches = _rank([entry for entry in entries if bucket.matches_entry(entry)])[: bucket.max_titles]
    if not matches:
        return None
    if len(matches) == 1:
        entry = matches[0]
        return bucket.single_template.format(
            label=bucket.label,
            title=entry.title,
            note=_note_suffix(entry, bucket.note_prefix),
            rating=_rating_suffix(entry),
        )
    return bucket.multi_template.format(label=bucket.label, titles=quote_titles([m.title for m in matches], " or "))


def _top_picks_reply(context: CatalogContext) -> Optional[str]:
    picks = context.top_picks(limit=3, min_enthusiasm=TOP_PICK_MIN_ENTHUSIASM)
    if not picks:
        return None
    if len(picks) == 1:
        entry = picks[0]
        return f'I highly recommend "{entry.title}"!{_note_suffix(entry)}{_rating_suffix(entry)} What do you think?'
    return f"Here are the top picks from the collection: {quote_titles([p.title for p in picks])}. Any of these sound good to you?"


def recommend(message: str, context: CatalogContext) -> Tuple[str, str]:
    """Purpose: Produce a deterministic recommendation sentence and its status.
    Inputs/Outputs: Inputs are the raw message and catalog context; output is
        (reply text, "completed" | "error").
    Side Effects / State: None; pure function.
    Dependencies: Uses GENRE_BUCKETS, CatalogContext.top_picks, and normalize_text.
    Failure Modes: None; an unavailable catalog yields a guidance sentence with "error".
    If Removed: Replies fail entirely whenever Gemini is unconfigured or down.
    Testing Notes: Check each bucket with a one-entry catalog and the generic listing.
    """
    # Guidance first, then genre buckets, then general top picks, then a sample listing.
    if not context.available:
        return CATALOG_UNAVAILABLE_REPLY, "error"
    if context.is_empty:
        return EMPTY_CATALOG_REPLY, "completed"

    normalized = normalize_text(message)
    for bucket in GENRE_BUCKETS:
        if not bucket.matches_message(normalized):
            continue
        reply = _bucket_reply(bucket, context.entries)
        if reply:
            return reply, "completed"

    if GENERAL_REQUEST_RE.search(normalized):
        reply = _top_picks_reply(context)
        if reply:
            return reply, "completed"

    samples = quote_titles([entry.title for entry in context.entries[:3]])
    return (
        f"I have {len(context.entries)} movies in the collection! Some options include: {samples}. "
        "What genre or mood are you in the mood for?",
        "completed",
    )
