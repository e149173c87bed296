"""Settings parsing from the environment."""

import pytest

from core.config import Settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in ["CORS_ORIGINS", "ENVIRONMENT", "DEBUG", "CREDIT_EXPIRY_DAYS"]:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_cors_origins_comma_separated(clean_env):
    clean_env.setenv("CORS_ORIGINS", "http://a, http://b,,")

    settings = Settings(_env_file=None)

    assert settings.cors_origins == ["http://a", "http://b"]


def test_cors_origins_json_list(clean_env):
    clean_env.setenv("CORS_ORIGINS", '["http://a", "http://b"]')

    settings = Settings(_env_file=None)

    assert settings.cors_origins == ["http://a", "http://b"]


def test_cors_origins_default(clean_env):
    settings = Settings(_env_file=None)

    assert settings.cors_origins == ["http://localhost:3000", "http://localhost:5000"]


def test_credit_expiry_must_be_positive(clean_env):
    clean_env.setenv("CREDIT_EXPIRY_DAYS", "0")

    with pytest.raises(ValueError):
        Settings(_env_file=None)


def test_environment_flags(clean_env):
    clean_env.setenv("ENVIRONMENT", "Production")

    settings = Settings(_env_file=None)

    assert settings.is_production
    assert not settings.is_development
