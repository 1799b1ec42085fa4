"""Rule-based intent classification for chat utterances.

Rules are evaluated as one ordered list. Submission cues come first, then request
cues, then discussion cues; the first matching rule decides the label and QUESTION
is returned when nothing matches.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence

from .models import IntentTag


@dataclass(frozen=True)
class IntentRule:
    """Single textual cue mapped to an intent label."""
    pattern: Pattern[str]
    label: IntentTag


@dataclass(frozen=True)
class IntentMatch:
    """Classification result with the rule that produced it (None for the default)."""
    label: IntentTag
    rule: Optional[IntentRule] = None

    @property
    def cue(self) -> str:
        return self.rule.pattern.pattern if self.rule else ""


def _rules(label: IntentTag, patterns: Sequence[str]) -> List[IntentRule]:
    return [IntentRule(re.compile(pattern, re.IGNORECASE), label) for pattern in patterns]


SUBMISSION_PATTERNS = [
    r"just watched",
    r"watched.*\band\b",
    r"\bsaw\b.*\bwas\b",
    r"finished.*season",
    r"binged",
    r"\bloved\b",
    r"\bhated\b",
    r"amazing",
    r"incredible",
    r"mind.?blowing",
]

REQUEST_PATTERNS = [
    r"what.*should.*watch",
    r"recommend",
    r"suggest",
    r"looking for",
    r"want.*watch",
    r"need.*movie",
    r"feel like",
    r"mood for",
    r"tonight",
    r"weekend",
    r"\bsci.?fi\b",
    r"science fiction",
    r"\bhorror\b",
    r"\bcomedy\b",
    r"\bthriller\b",
    r"\bromance\b",
    r"\bromantic\b",
    r"\baction\b",
    r"\bdrama\b",
    r"\bdocumentar(y|ies)\b",
    r"\banimated\b",
]

DISCUSSION_PATTERNS = [
    r"what.*think",
    r"opinion",
    r"thoughts",
    r"\babout\b",
    r"review",
]

INTENT_RULES: List[IntentRule] = (
    _rules(IntentTag.SUBMIT_RECOMMENDATION, SUBMISSION_PATTERNS)
    + _rules(IntentTag.REQUEST_RECOMMENDATION, REQUEST_PATTERNS)
    + _rules(IntentTag.DISCUSSION, DISCUSSION_PATTERNS)
)


def classify_with_match(text: str, rules: Optional[Sequence[IntentRule]] = None) -> IntentMatch:
    """Purpose: Classify an utterance and report which rule fired.
    Inputs/Outputs: Input is raw text and an optional ordered rule list; output is an
        IntentMatch whose rule is None when the QUESTION default applied.
    Side Effects / State: None; pure function.
    Dependencies: Uses INTENT_RULES by default.
    Failure Modes: None; empty or None text falls through to QUESTION.
    If Removed: Pipeline logs lose the cue behind each intent.
    Testing Notes: Swap in a custom rule list to check ordering without touching control flow.
    """
    # First matching rule wins; list order encodes SUBMIT > REQUEST > DISCUSSION.
    active_rules = INTENT_RULES if rules is None else rules
    lowered = (text or "").lower()
    for rule in active_rules:
        if rule.pattern.search(lowered):
            return IntentMatch(rule.label, rule)
    return IntentMatch(IntentTag.QUESTION)


def classify(text: str) -> IntentTag:
    """Label a raw utterance with exactly one IntentTag."""
    return classify_with_match(text).label
