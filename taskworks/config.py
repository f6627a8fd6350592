from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

FALLBACK_REDIRECT_URL = "https://taskworks.example/safe"


def _resolve_project_root() -> Path:
    if getattr(sys, "frozen", False):
        return Path(sys.executable).resolve().parent
    return Path(__file__).resolve().parents[1]


PROJECT_ROOT = _resolve_project_root()


def load_env() -> None:
    env_name = os.getenv("APP_ENV", "development")
    candidates = [Path.cwd(), PROJECT_ROOT]
    for base in candidates:
        env_path = base / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            break

    for base in candidates:
        env_specific = base / f".env.{env_name}"
        if env_specific.exists():
            load_dotenv(env_specific, override=True)
            break


@dataclass(frozen=True)
class Settings:
    database_url: str | None = None
    log_level: str = "INFO"
    log_dir: str = "logs"
    default_timezone: str = "UTC"
    pre_grace_min: int = 3
    post_grace_min: int = 3
    duration_default_min: int = 60
    focus_tags: tuple[str, ...] = ("focus",)
    redirect_url_default: str = FALLBACK_REDIRECT_URL
    dashboard_lookback_days: int = 60
    log_buffer_days: int = 2


def _redirect_url_from_site(site_url: str) -> str:
    site_url = site_url.strip()
    if not site_url:
        return FALLBACK_REDIRECT_URL
    return f"{site_url.rstrip('/')}/focus"


def _split_tags(raw: str) -> tuple[str, ...]:
    tags = tuple(part.strip() for part in raw.split(",") if part.strip())
    return tags or ("focus",)


def load_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL", "").strip() or None,
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_dir=os.getenv("LOG_DIR", "logs"),
        default_timezone=os.getenv("DEFAULT_TIMEZONE", "UTC").strip() or "UTC",
        pre_grace_min=int(os.getenv("PRE_GRACE_MIN", "3")),
        post_grace_min=int(os.getenv("POST_GRACE_MIN", "3")),
        duration_default_min=int(os.getenv("DURATION_DEFAULT_MIN", "60")),
        focus_tags=_split_tags(os.getenv("FOCUS_TAGS", "focus")),
        redirect_url_default=_redirect_url_from_site(os.getenv("SITE_URL", "")),
        dashboard_lookback_days=int(os.getenv("DASHBOARD_LOOKBACK_DAYS", "60")),
        log_buffer_days=int(os.getenv("LOG_BUFFER_DAYS", "2")),
    )


load_env()

SETTINGS = load_settings()
