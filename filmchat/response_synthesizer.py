"""Three-tier response cascade.

Tiers are evaluated in order and each returns either a SynthesisResult or None:
    GenerativeTier: one Gemini completion grounded on the catalog or on search candidates.
    SearchOnlyTier: canned sentence over search candidates when generation was skipped or
        failed.
    RuleEngineTier: deterministic keyword rules over the catalog; always answers.

The chain runner isolates every tier, so an exception inside one tier only moves control
to the next one.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .context_assembler import CatalogContext
from .errors import ConfigurationError, UpstreamError
from .gemini_client import GeminiClient
from .models import IntentTag, SearchCandidate
from .prompt_loader import PromptLibrary
from .rule_engine import recommend
from .search_adapter import SearchOutcome
from .utils import quote_titles, truncate_text

logger = logging.getLogger("filmchat.synth")

GENERATION_TEMPERATURE = 0.7
GENERATION_MAX_TOKENS = 300
PROMPT_CATALOG_ENTRIES = 5
CANDIDATE_OVERVIEW_CHARS = 160

STATUS_COMPLETED = "completed"
STATUS_ERROR = "error"

FINAL_FALLBACK_REPLY = (
    "Sorry, I had trouble putting an answer together. Please try again, or browse the "
    "collection on the Movies page!"
)
SUBMISSION_WITH_TITLE_REPLY = (
    'Nice! "{title}" sounds interesting. I can help you add it to the collection. '
    "What did you think of it?"
)
SUBMISSION_REPLY = (
    "That's awesome! What movie or series did you watch? I'd love to add it to the collection."
)
DISCUSSION_WITH_TITLE_REPLY = (
    'I\'d love to talk about "{title}"! What stood out to you: the story, the performances, '
    "or the way it was shot?"
)
DISCUSSION_REPLY = "I'd love to discuss that! What specific movie or series are you thinking about?"


@dataclass
class SynthesisRequest:
    """Everything a tier may use to answer one message."""
    message: str
    intent: IntentTag
    catalog: CatalogContext
    movie_title: Optional[str] = None
    search: SearchOutcome = field(default_factory=SearchOutcome)

    @property
    def candidates(self) -> List[SearchCandidate]:
        return self.search.candidates


@dataclass
class SynthesisResult:
    """Final reply payload produced by one tier."""
    response: str
    status: str = STATUS_COMPLETED
    tier: str = ""
    candidates: List[SearchCandidate] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class SynthesisTrace:
    """Why earlier tiers declined, for later tiers and for logging."""
    generative_unconfigured: bool = False
    generative_failed: bool = False
    events: List[str] = field(default_factory=list)

    def note(self, tier: str, outcome: str) -> None:
        self.events.append(f"{tier}:{outcome}")


class ResponseTier:
    """Base class for one strategy in the cascade."""
    name = "tier"

    def respond(self, request: SynthesisRequest, trace: SynthesisTrace) -> Optional[SynthesisResult]:
        raise NotImplementedError


def describe_search(search: SearchOutcome) -> str:
    """One sentence naming how many candidates exist and where they came from."""
    count = len(search.candidates)
    noun = "movie" if count == 1 else "movies"
    if search.mode == "similar":
        anchor = search.anchor_title or search.reference_title or "that title"
        return f'I found {count} {noun} similar to "{anchor}" on TMDB.'
    if search.mode == "exact":
        query = search.reference_title or "your search"
        return f'I found {count} {noun} matching "{query}" on TMDB.'
    return f"I found {count} popular {noun} on TMDB right now."


def _candidate_line(candidate: SearchCandidate) -> str:
    year = f" ({candidate.release_date[:4]})" if candidate.release_date else ""
    overview = truncate_text(candidate.overview, CANDIDATE_OVERVIEW_CHARS)
    return f"- {candidate.title}{year}, rated {candidate.rating:.1f}/10: {overview}"


class GenerativeTier(ResponseTier):
    """Single Gemini completion with a catalog- or search-grounded system prompt."""
    name = "generative"

    def __init__(
        self,
        gemini: GeminiClient,
        prompts: PromptLibrary,
        temperature: float = GENERATION_TEMPERATURE,
        max_tokens: int = GENERATION_MAX_TOKENS,
    ) -> None:
        self._gemini = gemini
        self._prompts = prompts
        self._temperature = temperature
        self._max_tokens = max_tokens

    def build_system_prompt(self, request: SynthesisRequest) -> str:
        """Purpose: Build the system prompt for the completion call.
        Inputs/Outputs: Input is the SynthesisRequest; output is the prompt text.
        Side Effects / State: Reads prompt templates through PromptLibrary (cached).
        Dependencies: Uses catalog_system.txt or search_system.txt.
        Failure Modes: Missing template files raise FileNotFoundError.
        If Removed: Generation would run ungrounded.
        Testing Notes: With candidates, the prompt must carry the count sentence and no catalog JSON.
        """
        # Candidates take precedence over the catalog snapshot.
        if request.candidates:
            return self._prompts.render(
                "search_system.txt",
                search_framing=describe_search(request.search),
                candidate_lines="\n".join(_candidate_line(c) for c in request.candidates),
            )
        catalog = [entry.as_prompt_dict() for entry in request.catalog.entries[:PROMPT_CATALOG_ENTRIES]]
        return self._prompts.render(
            "catalog_system.txt",
            catalog_json=json.dumps(catalog, ensure_ascii=False, indent=2),
        )

    def respond(self, request: SynthesisRequest, trace: SynthesisTrace) -> Optional[SynthesisResult]:
        """Purpose: Answer with one generative completion.
        Inputs/Outputs: Inputs are the request and trace; output is a result or None.
        Side Effects / State: One outbound Gemini call; marks the trace on decline.
        Dependencies: Uses GeminiClient.complete and build_system_prompt.
        Failure Modes: Unconfigured or failing Gemini returns None; empty text returns None.
        If Removed: Every reply comes from canned or rule-based text.
        Testing Notes: A fake client raising UpstreamError must set generative_failed.
        """
        if not self._gemini.configured:
            trace.generative_unconfigured = True
            trace.note(self.name, "unconfigured")
            return None
        if not request.candidates and not request.catalog.available:
            trace.note(self.name, "no_grounding")
            return None

        system_prompt = self.build_system_prompt(request)
        try:
            text = self._gemini.complete(
                system_prompt,
                request.message,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except ConfigurationError as exc:
            trace.generative_unconfigured = True
            trace.note(self.name, "unconfigured")
            logger.info("tier=%s status=unconfigured detail=%s", self.name, exc)
            return None
        except UpstreamError as exc:
            trace.generative_failed = True
            trace.note(self.name, "failed")
            logger.warning("tier=%s status=failed error=%s", self.name, exc)
            return None

        if not text:
            trace.note(self.name, "empty")
            return None
        trace.note(self.name, "success")
        return SynthesisResult(response=text, tier=self.name, candidates=list(request.candidates))


class SearchOnlyTier(ResponseTier):
    """Canned sentence over already-fetched search candidates."""
    name = "search_only"

    def respond(self, request: SynthesisRequest, trace: SynthesisTrace) -> Optional[SynthesisResult]:
        if not request.candidates:
            trace.note(self.name, "no_candidates")
            return None
        titles = quote_titles([candidate.title for candidate in request.candidates])
        reply = (
            f"{describe_search(request.search)} Here they are: {titles}. "
            "Take a look below and add any that catch your eye to the collection!"
        )
        trace.note(self.name, "success")
        return SynthesisResult(response=reply, tier=self.name, candidates=list(request.candidates))


class RuleEngineTier(ResponseTier):
    """Deterministic replies keyed on intent, then on genre/mood keywords."""
    name = "rule_engine"

    def respond(self, request: SynthesisRequest, trace: SynthesisTrace) -> Optional[SynthesisResult]:
        """Purpose: Always produce a reply without any outbound calls.
        Inputs/Outputs: Inputs are the request and trace; output is a SynthesisResult.
        Side Effects / State: None.
        Dependencies: Uses rule_engine.recommend for recommendation-style messages.
        Failure Modes: None expected; the chain runner still isolates it.
        If Removed: Replies fail when both Gemini and TMDB are unavailable.
        Testing Notes: SUBMIT with a title must echo the title; REQUEST must use the catalog.
        """
        # Submissions and discussions get acknowledgements; everything else uses the catalog.
        if request.intent == IntentTag.SUBMIT_RECOMMENDATION:
            if request.movie_title:
                reply = SUBMISSION_WITH_TITLE_REPLY.format(title=request.movie_title)
            else:
                reply = SUBMISSION_REPLY
            trace.note(self.name, "submission")
            return SynthesisResult(response=reply, tier=self.name)
        if request.intent == IntentTag.DISCUSSION:
            if request.movie_title:
                reply = DISCUSSION_WITH_TITLE_REPLY.format(title=request.movie_title)
            else:
                reply = DISCUSSION_REPLY
            trace.note(self.name, "discussion")
            return SynthesisResult(response=reply, tier=self.name)

        reply, status = recommend(request.message, request.catalog)
        trace.note(self.name, status)
        error = "Catalog unavailable" if status == STATUS_ERROR else None
        return SynthesisResult(response=reply, status=status, tier=self.name, error=error)


class ResponseSynthesizer:
    """Strategy chain: the first tier returning a result wins."""

    def __init__(self, tiers: Sequence[ResponseTier]) -> None:
        self._tiers = list(tiers)

    @classmethod
    def default(cls, gemini: GeminiClient, prompts: PromptLibrary) -> "ResponseSynthesizer":
        return cls([GenerativeTier(gemini, prompts), SearchOnlyTier(), RuleEngineTier()])

    def synthesize(self, request: SynthesisRequest) -> SynthesisResult:
        """Purpose: Run the cascade and return the first available reply.
        Inputs/Outputs: Input is a SynthesisRequest; output is always a SynthesisResult.
        Side Effects / State: Whatever the tiers do (at most one Gemini call).
        Dependencies: Uses the ordered tier list.
        Failure Modes: Tier exceptions are logged and skipped; if every tier declines a
            static apology with status "error" is returned.
        If Removed: The chat endpoint has no way to produce a reply.
        Testing Notes: Drive it with stub tiers that raise or return None.
        """
        trace = SynthesisTrace()
        for tier in self._tiers:
            try:
                result = tier.respond(request, trace)
            except Exception as exc:
                trace.note(tier.name, "exception")
                logger.warning("tier=%s status=exception error=%s", tier.name, exc, exc_info=True)
                continue
            if result is not None:
                result.tier = result.tier or tier.name
                logger.info("synthesis tier=%s status=%s trace=%s", result.tier, result.status, ",".join(trace.events))
                return result
        logger.error("synthesis status=exhausted trace=%s", ",".join(trace.events))
        return SynthesisResult(
            response=FINAL_FALLBACK_REPLY,
            status=STATUS_ERROR,
            tier="none",
            candidates=list(request.candidates),
            error="No response strategy succeeded",
        )
