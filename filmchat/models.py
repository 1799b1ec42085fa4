from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class IntentTag(str, Enum):
    """Classified purpose of a user utterance."""
    SUBMIT_RECOMMENDATION = "SUBMIT_RECOMMENDATION"
    REQUEST_RECOMMENDATION = "REQUEST_RECOMMENDATION"
    DISCUSSION = "DISCUSSION"
    QUESTION = "QUESTION"


class ChatRequest(BaseModel):
    """Request payload for chat API."""
    message: Optional[str] = None


class SearchCandidate(BaseModel):
    """Title returned by the metadata provider, not yet part of the catalog."""
    model_config = ConfigDict(populate_by_name=True)

    external_id: int = Field(alias="externalId")
    title: str
    overview: str = ""
    poster_ref: Optional[str] = Field(default=None, alias="posterRef")
    rating: float = 0.0
    release_date: Optional[str] = Field(default=None, alias="releaseDate")
    genre_ids: List[int] = Field(default_factory=list, alias="genreIds")
    in_collection: Optional[bool] = Field(default=None, alias="inCollection")


class ChatResponse(BaseModel):
    """Response payload returned by the chat API."""
    model_config = ConfigDict(populate_by_name=True)

    response: str
    status: str
    intent: Optional[IntentTag] = None
    movie_title: Optional[str] = Field(default=None, alias="movieTitle")
    movie_suggestions: Optional[List[SearchCandidate]] = Field(default=None, alias="movieSuggestions")
    error: Optional[str] = None


class CatalogEntry(BaseModel):
    """Persisted catalog record with personal annotations."""
    id: str
    tmdb_id: Optional[int] = None
    title: str
    overview: str = ""
    rating: Optional[float] = None
    genres: List[str] = Field(default_factory=list)
    personal_note: Optional[str] = None
    enthusiasm: int = Field(default=3, ge=1, le=5)
    poster_path: Optional[str] = None
    release_date: Optional[str] = None
    created_at: float


class ChatTurn(BaseModel):
    """Append-only record of one chat exchange."""
    input: str
    intent: IntentTag
    response: str
    created_at: float


class StatusCheckRequest(BaseModel):
    """Batch membership lookup payload."""
    model_config = ConfigDict(populate_by_name=True)

    tmdb_ids: Optional[List[int]] = Field(default=None, alias="tmdbIds")


class AddFromTmdbRequest(BaseModel):
    """Payload for adding a discovered title to the catalog."""
    model_config = ConfigDict(populate_by_name=True)

    tmdb_id: Optional[int] = Field(default=None, alias="tmdbId")


class MovieDetails(BaseModel):
    """Catalog entry merged with best-effort TMDB enrichment."""
    id: Any
    title: str
    overview: str
    release_date: str = ""
    poster_path: str = ""
    backdrop_path: Optional[str] = None
    vote_average: float = 0.0
    runtime: Optional[int] = None
    genres: List[Dict[str, Any]] = Field(default_factory=list)
    cast: List[Dict[str, Any]] = Field(default_factory=list)
    crew: List[Dict[str, Any]] = Field(default_factory=list)
    personal_note: Optional[str] = None
    enthusiasm: int = 3
    streaming_providers: Optional[Dict[str, Any]] = None
    trailers: List[Dict[str, Any]] = Field(default_factory=list)
    similar_movies: List[Dict[str, Any]] = Field(default_factory=list)
