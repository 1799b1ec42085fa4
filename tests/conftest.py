from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from filmchat.catalog_store import CatalogStore
from filmchat.config import Settings
from filmchat.errors import ConfigurationError, UpstreamError

PROMPTS_DIR = Path(__file__).resolve().parents[1] / "filmchat" / "prompts"


def tmdb_movie(movie_id: int, title: str, rating: float = 7.5, overview: str = "An overview.",
               poster: Optional[str] = "/poster.jpg", genre_ids: Optional[List[int]] = None) -> Dict[str, Any]:
    return {
        "id": movie_id,
        "title": title,
        "overview": overview,
        "poster_path": poster,
        "vote_average": rating,
        "release_date": "2014-11-05",
        "genre_ids": genre_ids or [878],
    }


class FakeTmdb:
    """In-memory stand-in for TmdbClient."""

    def __init__(self, configured: bool = True) -> None:
        self.configured = configured
        self.search_results: Dict[str, List[Dict[str, Any]]] = {}
        self.similar_results: Dict[int, List[Dict[str, Any]]] = {}
        self.popular_results: List[Dict[str, Any]] = []
        self.details: Dict[int, Dict[str, Any]] = {}
        self.failing: set = set()
        self.calls: List[tuple] = []

    def _check(self, name: str) -> None:
        if not self.configured:
            raise ConfigurationError("TMDB_API_KEY is not configured")
        if name in self.failing:
            raise UpstreamError(f"{name} failed", 500)

    def search(self, query: str, kind: str = "movie", page: int = 1) -> List[Dict[str, Any]]:
        self.calls.append(("search", query))
        self._check("search")
        return list(self.search_results.get(query, []))

    def search_page(self, query: str, page: int = 1) -> Dict[str, Any]:
        results = self.search(query)
        return {"results": results, "total_pages": 1, "total_results": len(results)}

    def similar(self, movie_id: int, kind: str = "movie") -> List[Dict[str, Any]]:
        self.calls.append(("similar", movie_id))
        self._check("similar")
        return list(self.similar_results.get(movie_id, []))

    def popular(self, kind: str = "movie") -> List[Dict[str, Any]]:
        self.calls.append(("popular",))
        self._check("popular")
        return list(self.popular_results)

    def movie_details(self, movie_id: int) -> Dict[str, Any]:
        self.calls.append(("details", movie_id))
        self._check("details")
        if movie_id not in self.details:
            raise UpstreamError("not found", 404)
        return self.details[movie_id]

    def movie_credits(self, movie_id: int) -> Dict[str, Any]:
        self._check("credits")
        return {
            "cast": [{"name": f"Actor {i}"} for i in range(12)],
            "crew": [
                {"name": "Christopher Nolan", "job": "Director"},
                {"name": "Someone Else", "job": "Gaffer"},
            ],
        }

    def watch_providers(self, movie_id: int) -> Dict[str, Any]:
        self._check("providers")
        return {"results": {"US": {"flatrate": [{"provider_name": "Paramount+"}]}}}

    def videos(self, movie_id: int) -> Dict[str, Any]:
        self._check("videos")
        return {
            "results": [
                {"key": "a", "type": "Trailer", "site": "YouTube"},
                {"key": "b", "type": "Teaser", "site": "YouTube"},
                {"key": "c", "type": "Trailer", "site": "Vimeo"},
            ]
        }

    def recommendations(self, movie_id: int) -> Dict[str, Any]:
        self._check("recommendations")
        return {"results": [tmdb_movie(100 + i, f"Rec {i}") for i in range(10)]}


class FakeGemini:
    """Stand-in for GeminiClient.complete."""

    def __init__(self, configured: bool = True, reply: str = "Try Arrival tonight!",
                 error: Optional[Exception] = None) -> None:
        self.configured = configured
        self.reply = reply
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def complete(self, system_prompt: str, user_message: str, temperature: float = 0.7,
                 max_tokens: int = 300, model: Optional[str] = None) -> str:
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_message": user_message,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if self.error is not None:
            raise self.error
        return self.reply


class BrokenStore:
    """Store whose every operation fails."""

    def __getattr__(self, name: str):
        def fail(*args: Any, **kwargs: Any) -> Any:
            from filmchat.errors import PersistenceError

            raise PersistenceError(f"{name} unavailable")

        return fail


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        gemini_api_key="",
        gemini_model="gemini-2.5-flash",
        gemini_timeout_sec=5.0,
        tmdb_api_key="",
        tmdb_base_url="https://api.themoviedb.org/3",
        request_timeout_sec=2.0,
        catalog_path=tmp_path / "catalog.json",
        prompts_dir=PROMPTS_DIR,
        context_limit=10,
    )


@pytest.fixture
def store(tmp_path: Path) -> CatalogStore:
    return CatalogStore(tmp_path / "catalog.json")


@pytest.fixture
def seeded_store(store: CatalogStore) -> CatalogStore:
    store.add_entry("Interstellar", tmdb_id=157336, overview="A team travels through space to save humanity.",
                    rating=8.4, genres=["878"], personal_note="Bring tissues", enthusiasm=5)
    store.add_entry("Fresh", tmdb_id=787699, overview="A woman's date turns into a nightmare.",
                    rating=6.7, genres=["27"], enthusiasm=4)
    store.add_entry("Paddington 2", tmdb_id=346648, overview="A bear gets framed and keeps everyone laughing.",
                    rating=7.8, genres=["35"], enthusiasm=5)
    store.add_entry("Quiet Drama", tmdb_id=1, overview="Slow and reflective.", rating=6.1,
                    genres=["18"], enthusiasm=2)
    return store


@pytest.fixture
def fake_tmdb() -> FakeTmdb:
    tmdb = FakeTmdb()
    tmdb.search_results["Interstellar"] = [tmdb_movie(157336, "Interstellar", 8.4)]
    tmdb.similar_results[157336] = [
        tmdb_movie(1, "Gravity", 7.2),
        tmdb_movie(2, "Low Rated", 5.0),
        tmdb_movie(3, "No Overview", 8.0, overview=""),
        tmdb_movie(4, "The Martian", 7.7),
        tmdb_movie(5, "Arrival", 7.6),
        tmdb_movie(6, "Contact", 7.1),
        tmdb_movie(7, "Ad Astra", 6.1),
        tmdb_movie(8, "Sunshine", 7.0),
        tmdb_movie(9, "Moon", 7.6),
    ]
    return tmdb
