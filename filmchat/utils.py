import re
import unicodedata
from typing import Optional


def normalize_text(text: str) -> str:
    """Purpose: Normalize free-form text for stable keyword matching.
    Inputs/Outputs: Input is a raw string; output is a lowercase ASCII-only string with
        diacritics removed and whitespace collapsed.
    Side Effects / State: None; pure function.
    Dependencies: Uses unicodedata and regex; called by the classifier and rule engine.
    Failure Modes: Returns an empty string when input is falsy.
    If Removed: Keyword buckets miss accented or oddly spaced input.
    Testing Notes: "Amélie" -> "amelie"; hyphens are kept so "sci-fi" still matches.
    """
    # Lowercase and strip diacritics for consistent matching.
    if not text:
        return ""
    lowered = text.lower()
    decomposed = unicodedata.normalize("NFD", lowered)
    stripped = "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")
    cleaned = re.sub(r"[^a-z0-9\s\-']+", " ", stripped)
    return re.sub(r"\s+", " ", cleaned).strip()


def truncate_text(text: Optional[str], limit: int) -> str:
    """Purpose: Bound free text so generated prompts stay small.
    Inputs/Outputs: Input is optional text and a character limit; output is the
        text cut at the last word boundary before the limit, with an ellipsis.
    Side Effects / State: None; pure function.
    Dependencies: None.
    Failure Modes: None; falsy input returns an empty string.
    If Removed: Long overviews inflate the catalog context beyond the token ceiling.
    Testing Notes: Text at or under the limit is returned unchanged.
    """
    if not text:
        return ""
    cleaned = text.strip()
    if len(cleaned) <= limit:
        return cleaned
    cut = cleaned[:limit].rsplit(" ", 1)[0].rstrip(" ,.;:")
    return f"{cut}..."


def quote_titles(titles: list, joiner: str = ", ") -> str:
    """Join titles as a quoted, human-readable list."""
    return joiner.join(f'"{title}"' for title in titles)
