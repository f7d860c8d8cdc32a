from __future__ import annotations

from pathlib import Path

import pytest

from karigar.config import API_KEY_VARS, DEFAULT_MODELS, load_advisor_config, load_storage_path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for names in API_KEY_VARS.values():
        for name in names:
            monkeypatch.delenv(name, raising=False)
    for name in ("KARIGAR_ADVISOR_BACKEND", "KARIGAR_ADVISOR_MODEL", "KARIGAR_ADVISOR_TIMEOUT", "KARIGAR_DB_PATH"):
        monkeypatch.delenv(name, raising=False)


def test_defaults_without_credentials(tmp_path: Path) -> None:
    cfg = load_advisor_config(str(tmp_path))
    assert cfg.backend == "gemini"
    assert cfg.model == DEFAULT_MODELS["gemini"]
    assert cfg.api_key is None
    assert cfg.timeout_seconds == 120


def test_dotenv_is_found_from_subdirectory(tmp_path: Path) -> None:
    (tmp_path / ".env").write_text(
        "KARIGAR_ADVISOR_BACKEND=openrouter\nOPEN_ROUTER_API_KEY=sk-or-test\nKARIGAR_ADVISOR_TIMEOUT=30\n",
        encoding="utf-8",
    )
    nested = tmp_path / "src" / "deep"
    nested.mkdir(parents=True)

    cfg = load_advisor_config(str(nested))

    assert cfg.backend == "openrouter"
    assert cfg.api_key == "sk-or-test"
    assert cfg.model == DEFAULT_MODELS["openrouter"]
    assert cfg.timeout_seconds == 30


def test_environment_wins_over_dotenv(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".env").write_text("GEMINI_API_KEY=from-file\nKARIGAR_ADVISOR_MODEL=gemini-x\n", encoding="utf-8")
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")

    cfg = load_advisor_config(str(tmp_path))

    assert cfg.api_key == "from-env"
    assert cfg.model == "gemini-x"


def test_unknown_backend_and_bad_timeout_fall_back(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KARIGAR_ADVISOR_BACKEND", "claude")
    monkeypatch.setenv("KARIGAR_ADVISOR_TIMEOUT", "soon")

    cfg = load_advisor_config(str(tmp_path))

    assert cfg.backend == "gemini"
    assert cfg.timeout_seconds == 120


def test_storage_path_from_dotenv(tmp_path: Path) -> None:
    assert load_storage_path(str(tmp_path)) is None
    (tmp_path / ".env").write_text("KARIGAR_DB_PATH=/data/karigar.sqlite3\n", encoding="utf-8")
    assert load_storage_path(str(tmp_path)) == "/data/karigar.sqlite3"
