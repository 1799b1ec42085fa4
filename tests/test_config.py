from pathlib import Path

from filmchat.config import load_settings


def test_defaults(monkeypatch):
    for name in ("GEMINI_API_KEY", "TMDB_API_KEY", "CATALOG_PATH", "CONTEXT_LIMIT", "GEMINI_MODEL"):
        monkeypatch.delenv(name, raising=False)
    settings = load_settings()
    assert settings.gemini_api_key == ""
    assert settings.gemini_model == "gemini-2.5-flash"
    assert settings.context_limit == 10
    assert settings.catalog_path.name == "catalog.json"
    assert (settings.prompts_dir / "catalog_system.txt").exists()


def test_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("CATALOG_PATH", str(tmp_path / "mine.json"))
    monkeypatch.setenv("CONTEXT_LIMIT", "4")
    monkeypatch.setenv("TMDB_BASE_URL", "http://tmdb.local/3/")
    settings = load_settings()
    assert settings.catalog_path == Path(tmp_path / "mine.json")
    assert settings.context_limit == 4
    assert settings.tmdb_base_url == "http://tmdb.local/3"


def test_settings_fields():
    from filmchat.config import Settings

    assert set(Settings.__dataclass_fields__) == {
        "gemini_api_key",
        "gemini_model",
        "gemini_timeout_sec",
        "tmdb_api_key",
        "tmdb_base_url",
        "request_timeout_sec",
        "catalog_path",
        "prompts_dir",
        "context_limit",
    }
