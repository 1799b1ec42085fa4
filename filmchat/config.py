from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent


@dataclass(frozen=True)
class Settings:
    """Configuration container for external services, storage, and runtime limits."""
    gemini_api_key: str
    gemini_model: str
    gemini_timeout_sec: float
    tmdb_api_key: str
    tmdb_base_url: str
    request_timeout_sec: float
    catalog_path: Path
    prompts_dir: Path
    context_limit: int


def load_settings() -> Settings:
    """Purpose: Load configuration from environment variables and defaults.
    Inputs/Outputs: No inputs; returns a Settings instance.
    Side Effects / State: Reads environment variables and filesystem paths.
    Dependencies: Uses os.getenv and BASE_DIR for default paths.
    Failure Modes: Invalid CONTEXT_LIMIT or timeout env values raise ValueError.
    If Removed: App cannot configure clients/storage and fails at startup.
    Testing Notes: Verify defaults and overrides via environment variables.
    """
    # Resolve the catalog path, then build Settings.
    catalog_path = os.getenv("CATALOG_PATH")
    if catalog_path:
        catalog_file = Path(catalog_path)
    else:
        catalog_file = (BASE_DIR / "data" / "catalog.json").resolve()

    prompts_dir = (BASE_DIR / "prompts").resolve()

    return Settings(
        gemini_api_key=os.getenv("GEMINI_API_KEY", ""),
        gemini_model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
        gemini_timeout_sec=float(os.getenv("GEMINI_TIMEOUT_SEC", "20")),
        tmdb_api_key=os.getenv("TMDB_API_KEY", ""),
        tmdb_base_url=os.getenv("TMDB_BASE_URL", "https://api.themoviedb.org/3").rstrip("/"),
        request_timeout_sec=float(os.getenv("REQUEST_TIMEOUT_SEC", "8")),
        catalog_path=catalog_file,
        prompts_dir=prompts_dir,
        context_limit=int(os.getenv("CONTEXT_LIMIT", "10")),
    )
