from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from .config import Settings
from .errors import ConfigurationError, UpstreamError

logger = logging.getLogger("filmchat.tmdb")


class TmdbClient:
    """Thin wrapper around the TMDB v3 REST API with bearer-token auth."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.themoviedb.org/3",
        timeout: float = 8.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Purpose: Configure the HTTP session used for TMDB calls.
        Inputs/Outputs: Inputs are the bearer token, base URL, timeout, and optional session.
        Side Effects / State: Creates a requests.Session when none is supplied.
        Dependencies: Uses requests.
        Failure Modes: None at init; a missing token surfaces as ConfigurationError per call.
        If Removed: Similar/exact search and detail enrichment cannot reach TMDB.
        Testing Notes: Inject a fake session to capture URLs, params, and headers.
        """
        # Keep credentials and build a reusable session.
        self._api_key = api_key or ""
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "TmdbClient":
        return cls(
            api_key=settings.tmdb_api_key,
            base_url=settings.tmdb_base_url,
            timeout=settings.request_timeout_sec,
        )

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Purpose: Issue one bounded GET request and decode the JSON body.
        Inputs/Outputs: Inputs are an API path and query params; output is the JSON dict.
        Side Effects / State: One outbound HTTPS request; no retries.
        Dependencies: Uses the requests session and the configured timeout.
        Failure Modes: ConfigurationError without a token; UpstreamError on network
            failure, timeout, non-2xx status, or a non-JSON body.
        If Removed: Every endpoint helper loses its transport.
        Testing Notes: Fake a 500 response and assert UpstreamError carries status_code.
        """
        if not self.configured:
            raise ConfigurationError("TMDB_API_KEY is not configured")
        url = f"{self._base_url}/{path.lstrip('/')}"
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = self._session.get(url, params=params, headers=headers, timeout=self._timeout)
        except requests.RequestException as exc:
            raise UpstreamError(f"TMDB request failed for {path}: {exc}") from exc
        if not 200 <= response.status_code < 300:
            raise UpstreamError(f"TMDB API error {response.status_code} for {path}", response.status_code)
        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError(f"TMDB returned invalid JSON for {path}") from exc
        if not isinstance(payload, dict):
            raise UpstreamError(f"TMDB returned unexpected payload for {path}")
        return payload

    def search(self, query: str, kind: str = "movie", page: int = 1) -> List[Dict[str, Any]]:
        """Search TMDB by title; kind is "movie" or "tv"."""
        payload = self._get(f"search/{kind}", {"query": query, "page": page})
        return list(payload.get("results") or [])

    def search_page(self, query: str, page: int = 1) -> Dict[str, Any]:
        return self._get("search/movie", {"query": query, "page": page})

    def similar(self, movie_id: int, kind: str = "movie") -> List[Dict[str, Any]]:
        payload = self._get(f"{kind}/{movie_id}/similar")
        return list(payload.get("results") or [])

    def popular(self, kind: str = "movie") -> List[Dict[str, Any]]:
        payload = self._get(f"{kind}/popular")
        return list(payload.get("results") or [])

    def movie_details(self, movie_id: int) -> Dict[str, Any]:
        return self._get(f"movie/{movie_id}")

    def movie_credits(self, movie_id: int) -> Dict[str, Any]:
        return self._get(f"movie/{movie_id}/credits")

    def watch_providers(self, movie_id: int) -> Dict[str, Any]:
        return self._get(f"movie/{movie_id}/watch/providers")

    def videos(self, movie_id: int) -> Dict[str, Any]:
        return self._get(f"movie/{movie_id}/videos")

    def recommendations(self, movie_id: int) -> Dict[str, Any]:
        return self._get(f"movie/{movie_id}/recommendations")
