from __future__ import annotations

from taskworks.config import FALLBACK_REDIRECT_URL, load_settings


def test_settings_defaults(monkeypatch) -> None:
    for name in ("DATABASE_URL", "SITE_URL", "FOCUS_TAGS", "DEFAULT_TIMEZONE", "PRE_GRACE_MIN"):
        monkeypatch.delenv(name, raising=False)

    settings = load_settings()

    assert settings.database_url is None
    assert settings.default_timezone == "UTC"
    assert settings.pre_grace_min == 3
    assert settings.focus_tags == ("focus",)
    assert settings.redirect_url_default == FALLBACK_REDIRECT_URL


def test_settings_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "sqlite:///taskworks.db")
    monkeypatch.setenv("SITE_URL", "https://app.example/")
    monkeypatch.setenv("FOCUS_TAGS", "deep, work")
    monkeypatch.setenv("DEFAULT_TIMEZONE", "Asia/Tokyo")
    monkeypatch.setenv("POST_GRACE_MIN", "0")

    settings = load_settings()

    assert settings.database_url == "sqlite:///taskworks.db"
    assert settings.redirect_url_default == "https://app.example/focus"
    assert settings.focus_tags == ("deep", "work")
    assert settings.default_timezone == "Asia/Tokyo"
    assert settings.post_grace_min == 0
