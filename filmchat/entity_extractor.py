from __future__ import annotations

import re
from typing import Optional

DOUBLE_QUOTED_RE = re.compile(r"[\"“]([^\"“”]+)[\"”]")
SINGLE_QUOTED_RE = re.compile(r"(?<![A-Za-z0-9])['‘]([^'‘’]+)['’](?![A-Za-z0-9])")
STOP_WORDS = r"(?:\s+(?:and|was|is|last|yesterday|today|with|but)\b|[.,!?;:]|$)"
WATCHED_RE = re.compile(r"\bwatched\s+([A-Za-z0-9\s:&'\-]+?)" + STOP_WORDS, re.IGNORECASE)
SAW_RE = re.compile(r"\bsaw\s+([A-Za-z0-9\s:&'\-]+?)" + STOP_WORDS, re.IGNORECASE)


def first_quoted(text: str) -> Optional[str]:
    """Return the earliest quoted substring, ignoring apostrophes inside words."""
    matches = [m for m in (DOUBLE_QUOTED_RE.search(text), SINGLE_QUOTED_RE.search(text)) if m]
    if not matches:
        return None
    earliest = min(matches, key=lambda m: m.start())
    return earliest.group(1)


def extract_title(text: str) -> Optional[str]:
    """Purpose: Pull a candidate film title out of a chat utterance.
    Inputs/Outputs: Input is raw text; output is the trimmed title or None.
    Side Effects / State: None; pure function.
    Dependencies: Uses first_quoted, then WATCHED_RE, then SAW_RE.
    Failure Modes: None; no match returns None.
    If Removed: Submission replies cannot echo the title the user mentioned.
    Testing Notes: A quoted substring always wins over "watched"/"saw" phrasing.
    """
    # Try quoted text first, then "watched X", then "saw X".
    if not text:
        return None
    quoted = first_quoted(text)
    if quoted and quoted.strip():
        return quoted.strip()
    for pattern in (WATCHED_RE, SAW_RE):
        match = pattern.search(text)
        if not match:
            continue
        candidate = match.group(1).strip()
        if candidate:
            return candidate
    return None
