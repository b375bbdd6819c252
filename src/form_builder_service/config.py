from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass
from pathlib import Path
from typing import List

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# used only when AUTH_JWT_SECRET is unset; tokens die with the process
_process_jwt_secret = secrets.token_urlsafe(32)
_warned_missing_secret = False


def repo_root() -> Path:
    # src/form_builder_service/config.py -> repo root
    return Path(__file__).resolve().parents[2]


def load_env_files() -> None:
    # Load `.env` + `.env.local` when present (local dev convenience).
    load_dotenv(repo_root() / ".env", override=False)
    load_dotenv(repo_root() / ".env.local", override=False)


def _env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or "").strip() or default


def _env_bool(name: str, default: bool = False) -> bool:
    v = (os.getenv(name) or "").strip().lower()
    if not v:
        return default
    return v in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return float(default)
    try:
        return float(raw)
    except ValueError:
        return float(default)


def _env_csv(name: str) -> List[str]:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return []
    return [t.strip() for t in raw.split(",") if t.strip()]


def _jwt_secret() -> str:
    global _warned_missing_secret
    configured = _env_str("AUTH_JWT_SECRET")
    if configured:
        return configured
    if not _warned_missing_secret:
        logger.warning("AUTH_JWT_SECRET is not set; signing tokens with a random per-process secret")
        _warned_missing_secret = True
    return _process_jwt_secret


@dataclass(frozen=True)
class Settings:
    base_url: str
    store_backend: str
    supabase_url: str
    supabase_key: str
    jwt_secret: str
    token_ttl_sec: int
    cron_secret: str
    google_client_id: str
    google_client_secret: str
    resend_api_key: str
    email_from: str
    upload_dir: str
    upload_max_mb: int
    ai_cache_ttl_sec: int
    cors_origins: List[str]

    @property
    def google_oauth_configured(self) -> bool:
        return bool(self.google_client_id and self.google_client_secret)

    @property
    def google_redirect_uri(self) -> str:
        return f"{self.base_url}/api/integrations/google-sheets/oauth/callback"


def get_settings() -> Settings:
    """
    Read settings from the environment on every call.

    Settings are cheap to build and tests flip env vars with monkeypatch, so nothing is memoized.
    """
    supabase_url = _env_str("SUPABASE_URL") or _env_str("NEXT_PUBLIC_SUPABASE_URL")
    supabase_key = _env_str("SUPABASE_SERVICE_ROLE_KEY") or _env_str("SUPABASE_ANON_KEY")
    default_backend = "supabase" if (supabase_url and supabase_key) else "memory"
    return Settings(
        base_url=_env_str("FORM_APP_BASE_URL", "http://localhost:3000").rstrip("/"),
        store_backend=_env_str("FORM_STORE", default_backend).lower(),
        supabase_url=supabase_url,
        supabase_key=supabase_key,
        jwt_secret=_jwt_secret(),
        token_ttl_sec=_env_int("AUTH_TOKEN_TTL_SEC", 7 * 24 * 3600),
        cron_secret=_env_str("CRON_SECRET"),
        google_client_id=_env_str("GOOGLE_CLIENT_ID"),
        google_client_secret=_env_str("GOOGLE_CLIENT_SECRET"),
        resend_api_key=_env_str("RESEND_API_KEY"),
        email_from=_env_str("RESEND_FROM_EMAIL", "Form Builder <onboarding@resend.dev>"),
        upload_dir=_env_str("UPLOAD_DIR", str(repo_root() / "uploads")),
        upload_max_mb=_env_int("UPLOAD_MAX_MB", 10),
        ai_cache_ttl_sec=_env_int("AI_FORM_CACHE_TTL_SEC", 300),
        cors_origins=_env_csv("FORM_API_CORS_ORIGINS"),
    )


def env_bool(name: str, default: bool = False) -> bool:
    return _env_bool(name, default)


def env_int(name: str, default: int) -> int:
    return _env_int(name, default)


def env_float(name: str, default: float) -> float:
    return _env_float(name, default)
