# =============================================================================
# tests/test_config.py - Settings Loading Tests
# =============================================================================

import pytest

from marketplace.core.config import load_settings
from marketplace.core.errors import ConfigError


def test_missing_keys_are_reported_together(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_JWT_SECRET", raising=False)

    with pytest.raises(ConfigError) as exc_info:
        load_settings()

    assert exc_info.value.missing == ["DATABASE_URL", "SUPABASE_JWT_SECRET"]
    assert "DATABASE_URL" in str(exc_info.value)
    assert "SUPABASE_JWT_SECRET" in str(exc_info.value)


def test_invalid_value_raises_config_error(monkeypatch):
    monkeypatch.setenv("DB_POOL_SIZE", "not-a-number")
    with pytest.raises(ConfigError) as exc_info:
        load_settings()
    assert exc_info.value.missing == []


def test_defaults_and_cors_list(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example,")
    settings = load_settings()

    assert settings.cors_origins_list == ["https://a.example", "https://b.example"]
    assert settings.REVIEW_ELIGIBILITY_DAYS == 14
    assert settings.JWT_AUDIENCE == "authenticated"
    assert settings.is_production is False
