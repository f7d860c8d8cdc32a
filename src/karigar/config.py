import os
from dataclasses import dataclass
from typing import Dict, Optional

from dotenv import dotenv_values

from .logging import get_logger

log = get_logger("config")

ADVISOR_BACKENDS = ("gemini", "openai", "openrouter")
DEFAULT_ADVISOR_BACKEND = "gemini"

DEFAULT_MODELS: Dict[str, str] = {
    "gemini": "gemini-2.5-flash",
    "openai": "gpt-4o-mini",
    "openrouter": "google/gemini-2.5-flash",
}

# Environment variable names searched (in order) for each backend's credential.
API_KEY_VARS: Dict[str, tuple] = {
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY", "VITE_GEMINI_API_KEY"),
    "openai": ("OPENAI_API_KEY", "openai_api_key"),
    "openrouter": ("OPEN_ROUTER_API_KEY", "open_router_api_key"),
}


@dataclass
class AdvisorConfig:
    backend: str
    model: str
    api_key: Optional[str]
    timeout_seconds: int = 120


def _find_upwards(start_dir: str, filename: str) -> Optional[str]:
    """Return first matching file found when walking up from start_dir.

    This makes running tools from subdirectories (e.g., `src/`) still find
    repository-level config files like `.env`.
    """
    d = os.path.abspath(start_dir or ".")
    while True:
        candidate = os.path.join(d, filename)
        if os.path.isfile(candidate):
            return candidate
        parent = os.path.dirname(d)
        if parent == d:
            return None
        d = parent


def _read_dotenv(dotenv_dir: str) -> Dict[str, str]:
    """Return key/value pairs from the nearest .env; does not mutate os.environ."""
    path = _find_upwards(dotenv_dir, ".env")
    if not path:
        log.debug(f"No .env found starting from: {os.path.abspath(dotenv_dir)}")
        return {}
    env = {k: v.strip() for k, v in dotenv_values(path).items() if v is not None}
    log.debug(f"Loaded {len(env)} key(s) from .env at {path}")
    return env


def _lookup(name: str, env: Dict[str, str]) -> Optional[str]:
    v = os.environ.get(name) or env.get(name)
    return v.strip() if v and v.strip() else None


def load_advisor_config(dotenv_dir: Optional[str] = None) -> AdvisorConfig:
    """Resolve backend, model and credential for the advisory client.

    Environment variables win over values in `.env`. A missing credential is
    not an error here; the advisor raises ConfigurationError on first use.
    """
    env = _read_dotenv(dotenv_dir or os.getcwd())
    backend = (_lookup("KARIGAR_ADVISOR_BACKEND", env) or DEFAULT_ADVISOR_BACKEND).lower()
    if backend not in ADVISOR_BACKENDS:
        log.warning("Unknown KARIGAR_ADVISOR_BACKEND=%r; defaulting to %r", backend, DEFAULT_ADVISOR_BACKEND)
        backend = DEFAULT_ADVISOR_BACKEND
    model = _lookup("KARIGAR_ADVISOR_MODEL", env) or DEFAULT_MODELS[backend]

    api_key = None
    for var in API_KEY_VARS[backend]:
        api_key = _lookup(var, env)
        if api_key:
            log.debug("Using %s for the %s backend", var, backend)
            break
    if not api_key:
        log.warning("No API key found for the %s advisor backend; AI features are disabled.", backend)

    timeout_raw = _lookup("KARIGAR_ADVISOR_TIMEOUT", env)
    try:
        timeout = int(timeout_raw) if timeout_raw else 120
    except ValueError:
        log.warning("KARIGAR_ADVISOR_TIMEOUT=%r is not an integer; using 120", timeout_raw)
        timeout = 120
    return AdvisorConfig(backend=backend, model=model, api_key=api_key, timeout_seconds=timeout)


def load_storage_path(dotenv_dir: Optional[str] = None) -> Optional[str]:
    """Return KARIGAR_DB_PATH from env or .env, if set."""
    env = _read_dotenv(dotenv_dir or os.getcwd())
    return _lookup("KARIGAR_DB_PATH", env)
