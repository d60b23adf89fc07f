"""Configuration parsing tests."""

import pytest

from clientele.core.config import DEFAULT_CORS_ORIGINS, Settings

DB_URL = "postgresql+asyncpg://user@localhost:5432/testdb"


def test_cors_origins_accepts_csv(monkeypatch) -> None:
    """CSV string in env parses into a list of origins."""
    monkeypatch.setenv("CORS_ORIGINS", "https://desk.example.com, https://admin.example.com/")
    cfg = Settings(database_url=DB_URL)
    assert cfg.cors_origins == ["https://desk.example.com", "https://admin.example.com"]


def test_cors_origins_accepts_json_array(monkeypatch) -> None:
    """JSON array string in env parses into a deduplicated list."""
    monkeypatch.setenv(
        "CORS_ORIGINS",
        '["https://desk.example.com","https://desk.example.com","http://localhost:3000"]',
    )
    cfg = Settings(database_url=DB_URL)
    assert cfg.cors_origins == ["https://desk.example.com", "http://localhost:3000"]


def test_cors_origins_blank_uses_defaults(monkeypatch) -> None:
    monkeypatch.setenv("CORS_ORIGINS", "  ")
    cfg = Settings(database_url=DB_URL)
    assert cfg.cors_origins == DEFAULT_CORS_ORIGINS


def test_cors_origins_rejects_invalid_object(monkeypatch) -> None:
    """Invalid values fail with a clear validation error."""
    monkeypatch.setenv("CORS_ORIGINS", '{"invalid":"json"}')
    try:
        Settings(database_url=DB_URL)
    except Exception as exc:
        assert "CORS_ORIGINS" in str(exc)
    else:
        raise AssertionError("Expected invalid CORS_ORIGINS to fail")


def test_rate_limit_backend_must_be_known(monkeypatch) -> None:
    monkeypatch.setenv("RATE_LIMIT_BACKEND", "memcached")
    with pytest.raises(ValueError):
        Settings(database_url=DB_URL)


@pytest.mark.parametrize("name", ["RATE_LIMIT_MAX_IDENTITIES", "AT_RISK_VIP_DAYS"])
def test_sizes_must_be_positive(monkeypatch, name) -> None:
    monkeypatch.setenv(name, "0")
    with pytest.raises(ValueError):
        Settings(database_url=DB_URL)


def test_defaults() -> None:
    cfg = Settings(database_url=DB_URL)
    assert cfg.rate_limit_backend == "memory"
    assert cfg.rate_limit_max_identities == 500
    assert cfg.at_risk_vip_days == 60
    assert cfg.rate_limit_trust_forwarded_for is False
