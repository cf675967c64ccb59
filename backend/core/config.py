"""Process configuration sourced from the environment."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Mapping

from dotenv import load_dotenv

from backend.core.errors import ConfigurationError

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TEMPERATURE = 0.4
DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_API_BASE = "https://generativelanguage.googleapis.com"
DEFAULT_CORS_ORIGINS = ("http://localhost:3000", "http://127.0.0.1:3000")
DEFAULT_SESSION_TTL_SECONDS = 1800.0
DEFAULT_MAX_SESSIONS = 500


def _read_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from exc


def _read_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True, slots=True)
class Settings:
    api_key: str
    model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    api_base: str = DEFAULT_API_BASE
    cors_origins: tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)
    log_level: str = "INFO"
    session_ttl: float = DEFAULT_SESSION_TTL_SECONDS
    max_sessions: int = DEFAULT_MAX_SESSIONS

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from ``env`` (the process environment by default).

        A missing API key fails here, at start-up, instead of surfacing
        later as an opaque request failure.
        """

        if env is None:
            load_dotenv()
            env = os.environ

        api_key = (env.get("GEMINI_API_KEY") or env.get("API_KEY") or "").strip()
        if not api_key:
            raise ConfigurationError(
                "GEMINI_API_KEY is not set; export it (or add it to .env) before starting the server"
            )

        temperature = _read_float(env, "GEMINI_TEMPERATURE", DEFAULT_TEMPERATURE)
        if not 0.0 <= temperature <= 2.0:
            raise ConfigurationError("GEMINI_TEMPERATURE must be between 0 and 2")

        timeout = _read_float(env, "GEMINI_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)
        if timeout <= 0:
            raise ConfigurationError("GEMINI_TIMEOUT_SECONDS must be positive")

        session_ttl = _read_float(env, "SESSION_TTL_SECONDS", DEFAULT_SESSION_TTL_SECONDS)
        if session_ttl <= 0:
            raise ConfigurationError("SESSION_TTL_SECONDS must be positive")

        max_sessions = _read_int(env, "MAX_SESSIONS", DEFAULT_MAX_SESSIONS)
        if max_sessions < 1:
            raise ConfigurationError("MAX_SESSIONS must be at least 1")

        origins_env = env.get("API_CORS_ORIGINS", "")
        origins = tuple(origin.strip() for origin in origins_env.split(",") if origin.strip())

        return cls(
            api_key=api_key,
            model=(env.get("GEMINI_MODEL") or DEFAULT_MODEL).strip(),
            temperature=temperature,
            timeout=timeout,
            api_base=(env.get("GEMINI_API_BASE") or DEFAULT_API_BASE).strip(),
            cors_origins=origins or DEFAULT_CORS_ORIGINS,
            log_level=(env.get("LOG_LEVEL") or "INFO").strip().upper(),
            session_ttl=session_ttl,
            max_sessions=max_sessions,
        )
