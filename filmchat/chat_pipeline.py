"""FilmChat conversational pipeline orchestration.

Role:
    Runs one stateless chat exchange end to end: validation, intent and title
    extraction, catalog context, optional TMDB search, the response cascade, and the
    membership annotation of search candidates. It owns the PipelineContext contract
    and the step ordering used by the StepRunner.

Pipeline data contract (core fields passed across steps):
    - user_message, validation_error: raw input and the guard outcome.
    - intent, intent_cue, movie_title: classifier and extractor outputs.
    - catalog: CatalogContext snapshot (available flag set when the store fails).
    - search: SearchOutcome with candidates from similarity or exact mode.
    - result: SynthesisResult chosen by the cascade.

Step contracts:
    Validation:
        Rejects empty messages with a guidance reply; later steps are skipped.
    Intent Detection:
        Pure classification and title extraction.
    Context Assembly:
        Reads the newest catalog entries; never raises.
    Search:
        Runs only when TMDB is configured and the message carries a search cue.
    Synthesis:
        Generative tier, then search-only tier, then rule engine.
    Membership:
        Marks which candidates are already in the collection.

Conversation logging is not a step: the caller schedules it after the reply is sent.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .catalog_store import CatalogStore
from .context_assembler import DEFAULT_CONTEXT_LIMIT, CatalogContext, build_context
from .conversation_logger import build_turn
from .entity_extractor import extract_title
from .errors import ValidationError
from .intent_classifier import classify_with_match
from .models import ChatResponse, ChatTurn, IntentTag
from .pipeline_runtime import PipelineStep, StepRunner
from .response_synthesizer import (
    STATUS_ERROR,
    ResponseSynthesizer,
    SynthesisRequest,
    SynthesisResult,
)
from .search_adapter import SearchAdapter, SearchOutcome, wants_exact, wants_similar
from .status_checker import StatusChecker

logger = logging.getLogger("filmchat.pipeline")

EMPTY_MESSAGE_REPLY = (
    'Please ask me about movies! Try "recommend a sci-fi movie" or "what should I watch tonight?"'
)
EMPTY_MESSAGE_ERROR = "Message is required"


@dataclass
class PipelineContext:
    """Mutable context passed through each pipeline step."""
    user_message: str
    started_at: float = field(default_factory=time.time)
    validation_error: Optional[str] = None
    intent: IntentTag = IntentTag.QUESTION
    intent_cue: str = ""
    movie_title: Optional[str] = None
    catalog: CatalogContext = field(default_factory=CatalogContext)
    search: SearchOutcome = field(default_factory=SearchOutcome)
    result: Optional[SynthesisResult] = None
    thinking_logs: List[Dict[str, str]] = field(default_factory=list)

    def log(self, event: str, detail: str, status: str = "success") -> None:
        """Append a structured step entry for debugging output."""
        self.thinking_logs.append(
            {
                "event": event,
                "detail": detail,
                "status": status,
            }
        )

    @property
    def is_invalid(self) -> bool:
        return self.validation_error is not None


class ChatPipeline:
    def __init__(
        self,
        store: CatalogStore,
        search_adapter: SearchAdapter,
        synthesizer: ResponseSynthesizer,
        status_checker: StatusChecker,
        context_limit: int = DEFAULT_CONTEXT_LIMIT,
    ) -> None:
        """Purpose: Wire the pipeline components and register the ordered steps.
        Inputs/Outputs: Inputs are the store, search adapter, synthesizer, status
            checker, and the catalog context ceiling; no return value.
        Side Effects / State: Builds a StepRunner; holds no per-request state.
        Dependencies: Uses StepRunner/PipelineStep and the step methods below.
        Failure Modes: None at init; step errors propagate to the caller of handle_message.
        If Removed: The chat endpoint has nothing to run.
        Testing Notes: Instantiate with fakes and assert on the returned context.
        """
        # Store collaborators and build the step runner.
        self._store = store
        self._search = search_adapter
        self._synthesizer = synthesizer
        self._status_checker = status_checker
        self._context_limit = context_limit
        self._runner: StepRunner[PipelineContext] = StepRunner(
            steps=[
                PipelineStep("validation", self._step_validation, always_run=True),
                PipelineStep("intent_detection", self._step_intent_detection, skip_if=_invalid),
                PipelineStep("context_assembly", self._step_context_assembly, skip_if=_invalid),
                PipelineStep("search", self._step_search, skip_if=self._skip_search),
                PipelineStep("synthesis", self._step_synthesis, skip_if=_invalid),
                PipelineStep("membership", self._step_membership, skip_if=_no_candidates),
            ]
        )

    def handle_message(self, user_message: Optional[str]) -> PipelineContext:
        """Purpose: Run the full pipeline for one message and return its context.
        Inputs/Outputs: Input is the raw message (None allowed); output is a populated
            PipelineContext whose result is always set.
        Side Effects / State: Store reads and outbound TMDB/Gemini calls via collaborators.
        Dependencies: Uses StepRunner.run.
        Failure Modes: Component failures degrade inside their steps; an unexpected
            exception propagates to the HTTP layer's catch-all.
        If Removed: Chat handler cannot execute pipeline logic.
        Testing Notes: Empty input must produce a guidance result without touching the store.
        """
        context = PipelineContext(user_message=(user_message or "").strip())
        logger.info("question=%s", context.user_message[:200])
        self._runner.run(context)
        return context

    def _skip_search(self, context: PipelineContext) -> bool:
        if context.is_invalid or not self._search.configured:
            return True
        return not (wants_similar(context.user_message) or wants_exact(context.user_message))

    def _step_validation(self, context: PipelineContext) -> None:
        # Empty input short-circuits with a guidance reply.
        try:
            context.user_message = validate_message(context.user_message)
        except ValidationError as exc:
            context.validation_error = str(exc)
        else:
            context.log("Validation", "Message accepted")
            return
        context.result = SynthesisResult(
            response=EMPTY_MESSAGE_REPLY,
            status=STATUS_ERROR,
            tier="validation",
            error=EMPTY_MESSAGE_ERROR,
        )
        context.log("Validation", EMPTY_MESSAGE_ERROR, status="error")
        logger.info("step=validation status=rejected")

    def _step_intent_detection(self, context: PipelineContext) -> None:
        """Purpose: Classify the message and extract a referenced title.
        Inputs/Outputs: Input is PipelineContext; sets intent, intent_cue, movie_title.
        Side Effects / State: Appends a thinking log entry.
        Dependencies: Uses classify_with_match and extract_title (both pure).
        Failure Modes: None; classification is total.
        If Removed: The rule engine cannot tell submissions from requests.
        Testing Notes: "I just watched Dune and loved it" sets SUBMIT and "Dune".
        """
        match = classify_with_match(context.user_message)
        context.intent = match.label
        context.intent_cue = match.cue
        context.movie_title = extract_title(context.user_message)
        context.log("Intent Detection", f"{context.intent.value} title={context.movie_title or '-'}")
        logger.info(
            "step=intent_detection intent=%s cue=%s title=%s",
            context.intent.value,
            context.intent_cue or "-",
            context.movie_title or "-",
        )

    def _step_context_assembly(self, context: PipelineContext) -> None:
        context.catalog = build_context(self._store, self._context_limit)
        status = "success" if context.catalog.available else "error"
        context.log("Context Assembly", f"{len(context.catalog.entries)} catalog entries", status=status)

    def _step_search(self, context: PipelineContext) -> None:
        """Purpose: Fetch TMDB candidates for similarity or exact-title requests.
        Inputs/Outputs: Input is PipelineContext; sets context.search.
        Side Effects / State: One or two outbound TMDB calls.
        Dependencies: Uses SearchAdapter; similarity cues take priority over exact cues.
        Failure Modes: Upstream failures leave an empty candidate list.
        If Removed: Replies never surface titles outside the collection.
        Testing Notes: "show me something similar to X" must use similarity mode.
        """
        if wants_similar(context.user_message):
            context.search = self._search.search_similar(context.user_message)
        else:
            context.search = self._search.search_exact(context.user_message)
        context.log(
            "Search",
            f"mode={context.search.mode} results={len(context.search.candidates)}",
            status="success" if context.search.candidates else "empty",
        )

    def _step_synthesis(self, context: PipelineContext) -> None:
        request = SynthesisRequest(
            message=context.user_message,
            intent=context.intent,
            catalog=context.catalog,
            movie_title=context.movie_title,
            search=context.search,
        )
        context.result = self._synthesizer.synthesize(request)
        context.log("Synthesis", f"tier={context.result.tier}", status=context.result.status)

    def _step_membership(self, context: PipelineContext) -> None:
        candidates = context.result.candidates if context.result else []
        self._status_checker.annotate(candidates)
        present = sum(1 for candidate in candidates if candidate.in_collection)
        context.log("Membership", f"{present}/{len(candidates)} already in collection")


def validate_message(message: Optional[str]) -> str:
    """Return the stripped message; empty or missing input raises ValidationError."""
    text = (message or "").strip()
    if not text:
        raise ValidationError(EMPTY_MESSAGE_ERROR)
    return text


def _invalid(context: PipelineContext) -> bool:
    return context.is_invalid


def _no_candidates(context: PipelineContext) -> bool:
    return context.result is None or not context.result.candidates


def to_chat_response(context: PipelineContext) -> ChatResponse:
    """Purpose: Convert a finished PipelineContext into the API payload.
    Inputs/Outputs: Input is PipelineContext; output is ChatResponse.
    Side Effects / State: None.
    Dependencies: Uses context.result; a missing result maps to a generic error reply.
    Failure Modes: None.
    If Removed: The HTTP layer would need to know pipeline internals.
    Testing Notes: movieSuggestions is omitted (None) when there are no candidates.
    """
    result = context.result
    if result is None:
        return ChatResponse(
            response="Something went wrong. Please try again or browse movies manually.",
            status=STATUS_ERROR,
            error="Pipeline produced no result",
        )
    return ChatResponse(
        response=result.response,
        status=result.status,
        intent=None if context.is_invalid else context.intent,
        movie_title=context.movie_title,
        movie_suggestions=result.candidates or None,
        error=result.error,
    )


def turn_for_logging(context: PipelineContext) -> Optional[ChatTurn]:
    """ChatTurn for the audit log, or None for rejected input."""
    if context.is_invalid or context.result is None:
        return None
    return build_turn(context.user_message, context.intent, context.result.response, context.started_at)
