from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from fastapi import BackgroundTasks, FastAPI, Request, Response
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .catalog_store import ORDER_RECENCY, CatalogStore
from .chat_pipeline import EMPTY_MESSAGE_REPLY, ChatPipeline, to_chat_response, turn_for_logging
from .collection import CollectionService
from .config import Settings, load_settings
from .conversation_logger import ConversationLogger
from .errors import ConfigurationError, PersistenceError, UpstreamError
from .gemini_client import GeminiClient
from .models import AddFromTmdbRequest, ChatRequest, ChatResponse, StatusCheckRequest
from .movie_details import MovieDetailsService
from .prompt_loader import PromptLibrary
from .response_synthesizer import STATUS_ERROR, ResponseSynthesizer
from .search_adapter import SearchAdapter
from .status_checker import StatusChecker
from .tmdb_client import TmdbClient

BASE_DIR = Path(__file__).resolve().parent

log_level_name = os.getenv("LOG_LEVEL", "INFO").upper()
log_level = getattr(logging, log_level_name, logging.INFO)
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

logging.getLogger("filmchat").setLevel(log_level)
logger = logging.getLogger("filmchat.api")

ENV_PATH = BASE_DIR / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH, override=True)

CHAT_FAILURE_REPLY = "Something went wrong. Please try again or browse movies manually."
CHAT_STATUS_HEADER = "X-Chat-Status"
CHAT_PATH = "/api/chat"
INVALID_BODY_ERROR = "Message must be a JSON object with a string message"


@dataclass
class Services:
    """Explicit collaborators shared by the route handlers of one app instance."""
    store: CatalogStore
    tmdb: TmdbClient
    pipeline: ChatPipeline
    conversation_logger: ConversationLogger
    status_checker: StatusChecker
    collection: CollectionService
    details: MovieDetailsService


def build_services(
    settings: Settings,
    store: Optional[CatalogStore] = None,
    tmdb: Optional[TmdbClient] = None,
    gemini: Optional[GeminiClient] = None,
) -> Services:
    """Purpose: Construct every pipeline component from settings or injected clients.
    Inputs/Outputs: Inputs are Settings and optional store/TMDB/Gemini overrides; output
        is a Services bundle.
    Side Effects / State: Configures the Gemini SDK when a key is present.
    Dependencies: Uses all component constructors.
    Failure Modes: None; missing credentials leave clients unconfigured.
    If Removed: Routes would have to reach for module-level singletons.
    Testing Notes: Inject fakes here to test routes without network access.
    """
    store = store or CatalogStore(settings.catalog_path)
    tmdb = tmdb or TmdbClient.from_settings(settings)
    gemini = gemini or GeminiClient(settings)
    status_checker = StatusChecker(store)
    pipeline = ChatPipeline(
        store=store,
        search_adapter=SearchAdapter(tmdb),
        synthesizer=ResponseSynthesizer.default(gemini, PromptLibrary(settings.prompts_dir)),
        status_checker=status_checker,
        context_limit=settings.context_limit,
    )
    logger.info(
        "services tmdb_configured=%s gemini_configured=%s catalog=%s",
        tmdb.configured,
        gemini.configured,
        settings.catalog_path,
    )
    return Services(
        store=store,
        tmdb=tmdb,
        pipeline=pipeline,
        conversation_logger=ConversationLogger(store),
        status_checker=status_checker,
        collection=CollectionService(store, tmdb),
        details=MovieDetailsService(store, tmdb),
    )


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> FastAPI:
    settings = settings or load_settings()
    services = services or build_services(settings)
    app = FastAPI(title="FilmChat")
    app.state.services = services

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed chat bodies get the conversational error payload; other routes keep the 422."""
        if request.url.path != CHAT_PATH:
            return await request_validation_exception_handler(request, exc)
        logger.info("chat status=error tier=validation error=invalid_body")
        payload = ChatResponse(response=EMPTY_MESSAGE_REPLY, status=STATUS_ERROR, error=INVALID_BODY_ERROR)
        return JSONResponse(
            payload.model_dump(by_alias=True, exclude_none=True),
            headers={CHAT_STATUS_HEADER: payload.status},
        )

    @app.post(
        CHAT_PATH,
        response_model=ChatResponse,
        response_model_by_alias=True,
        response_model_exclude_none=True,
    )
    def chat(request: ChatRequest, background_tasks: BackgroundTasks, response: Response) -> ChatResponse:
        """Purpose: Handle chat requests and run the recommendation pipeline.
        Inputs/Outputs: Input is ChatRequest; output is ChatResponse, always with HTTP 200.
        Side Effects / State: Schedules the conversation log write after the reply.
        Dependencies: Uses ChatPipeline and ConversationLogger.
        Failure Modes: Any exception becomes a conversational reply with status "error".
        If Removed: Core chat functionality is unavailable.
        Testing Notes: Post an empty message and verify status and response are set.
        """
        # Run the pipeline inside a catch-all so the chat UI always receives a payload.
        try:
            context = services.pipeline.handle_message(request.message)
            payload = to_chat_response(context)
            turn = turn_for_logging(context)
            if turn is not None:
                background_tasks.add_task(services.conversation_logger.log, turn)
            tier = context.result.tier if context.result else "none"
        except Exception as exc:
            logger.exception("chat status=error error=%s", exc)
            payload = ChatResponse(response=CHAT_FAILURE_REPLY, status=STATUS_ERROR, error="Failed to process message")
            tier = "none"
        response.headers[CHAT_STATUS_HEADER] = payload.status
        logger.info("chat status=%s tier=%s", payload.status, tier)
        return payload

    @app.get("/api/movies")
    def list_movies() -> JSONResponse:
        """Return every catalog entry, newest first."""
        try:
            entries = services.store.find_catalog_entries(order_by=ORDER_RECENCY)
        except PersistenceError as exc:
            logger.error("movies status=error error=%s", exc)
            return JSONResponse({"error": "Failed to fetch movies"}, status_code=500)
        results = [entry.model_dump() for entry in entries]
        return JSONResponse({"results": results, "total": len(results)})

    @app.get("/api/movies/search")
    def search_movies(query: Optional[str] = None) -> JSONResponse:
        """Purpose: Pass a title search through to TMDB for the manual search box.
        Inputs/Outputs: Input is the query string; output is TMDB results and paging totals.
        Side Effects / State: One outbound TMDB request.
        Dependencies: Uses TmdbClient.search_page.
        Failure Modes: 400 without query, 503 when TMDB is unconfigured, 502 on upstream failure.
        If Removed: The UI can only discover titles through chat.
        Testing Notes: Verify each status code with a fake client.
        """
        if not query:
            return JSONResponse({"error": "Query parameter is required"}, status_code=400)
        try:
            data = services.tmdb.search_page(query)
        except ConfigurationError:
            return JSONResponse({"error": "TMDB API key not configured"}, status_code=503)
        except UpstreamError as exc:
            logger.warning("movie_search status=failed error=%s", exc)
            return JSONResponse({"error": "Failed to search movies"}, status_code=502)
        results = [
            {
                "id": movie.get("id"),
                "title": movie.get("title"),
                "overview": movie.get("overview"),
                "release_date": movie.get("release_date"),
                "poster_path": movie.get("poster_path"),
                "vote_average": movie.get("vote_average"),
                "genre_ids": movie.get("genre_ids"),
            }
            for movie in data.get("results") or []
        ]
        return JSONResponse(
            {
                "results": results,
                "total_pages": data.get("total_pages", 0),
                "total_results": data.get("total_results", 0),
            }
        )

    @app.post("/api/movies/check-status")
    def check_status(request: StatusCheckRequest) -> JSONResponse:
        """Batch membership lookup; failures come back as an empty map."""
        if request.tmdb_ids is None:
            return JSONResponse({"success": False, "message": "Valid TMDB IDs array is required"}, status_code=400)
        status_map = services.status_checker.check_membership(request.tmdb_ids)
        return JSONResponse({"success": True, "statusMap": {str(k): v for k, v in status_map.items()}})

    @app.post("/api/movies/add-from-tmdb")
    def add_from_tmdb(request: AddFromTmdbRequest) -> JSONResponse:
        """Purpose: Add a TMDB title to the collection.
        Inputs/Outputs: Input is {tmdbId}; output reports success, message, and the entry.
        Side Effects / State: TMDB details request and a store write.
        Dependencies: Uses CollectionService.add_from_tmdb.
        Failure Modes: 400 invalid id, 503 TMDB unconfigured, 404 TMDB lookup failure,
            500 store failure.
        If Removed: Search candidates cannot be saved from the chat UI.
        Testing Notes: Add twice and verify alreadyExists on the second call.
        """
        if not request.tmdb_id:
            return JSONResponse({"success": False, "message": "Valid TMDB ID is required"}, status_code=400)
        try:
            outcome = services.collection.add_from_tmdb(request.tmdb_id)
        except ConfigurationError:
            return JSONResponse({"success": False, "message": "TMDB API not configured"}, status_code=503)
        except UpstreamError as exc:
            logger.warning("add_from_tmdb tmdb_id=%s status=failed error=%s", request.tmdb_id, exc)
            return JSONResponse(
                {"success": False, "message": "Failed to fetch movie details from TMDB"},
                status_code=404,
            )
        except PersistenceError as exc:
            logger.error("add_from_tmdb tmdb_id=%s status=error error=%s", request.tmdb_id, exc)
            return JSONResponse({"success": False, "message": "Failed to add movie to collection"}, status_code=500)
        movie = outcome.entry.model_dump() if outcome.entry else None
        body = {"success": outcome.success, "message": outcome.message, "movie": movie}
        if outcome.already_exists:
            body["alreadyExists"] = True
        return JSONResponse(body)

    @app.get("/api/movies/{movie_id}/details")
    def movie_details(movie_id: str) -> JSONResponse:
        """Catalog entry merged with concurrently fetched TMDB details."""
        try:
            details = services.details.get_details(movie_id)
        except PersistenceError as exc:
            logger.error("details id=%s status=error error=%s", movie_id, exc)
            return JSONResponse({"success": False, "error": "Failed to fetch movie details"}, status_code=500)
        if details is None:
            return JSONResponse({"success": False, "error": "Movie not found"}, status_code=404)
        return JSONResponse({"success": True, "movie": details.model_dump()})

    @app.delete("/api/movies/{movie_id}")
    def delete_movie(movie_id: str) -> JSONResponse:
        try:
            removed = services.collection.remove(movie_id)
        except PersistenceError as exc:
            logger.error("delete id=%s status=error error=%s", movie_id, exc)
            return JSONResponse({"success": False, "error": "Failed to delete movie from collection"}, status_code=500)
        if removed is None:
            return JSONResponse({"success": False, "error": "Movie not found"}, status_code=404)
        return JSONResponse(
            {
                "success": True,
                "message": f'"{removed.title}" has been removed from your collection',
                "deletedMovie": {"id": removed.id, "title": removed.title},
            }
        )

    return app


app = create_app()
