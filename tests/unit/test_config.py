from __future__ import annotations

import pytest

from src.adapters.config import AppRuntimeConfig


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "APP_ENV",
        "CACHE_BACKEND",
        "REDIS_URL",
        "CACHE_MAX_VALUE_BYTES",
        "CACHE_SHUTDOWN_TIMEOUT_S",
        "TRANSIT_SNAPSHOT_BUCKET",
        "ENABLE_FAKE_BUSES",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults() -> None:
    cfg = AppRuntimeConfig.from_env()

    assert cfg.app_env == "development"
    assert cfg.cache_backend == "memory"
    assert cfg.cache_max_value_bytes == 100 * 1024 * 1024
    assert cfg.cache_shutdown_timeout_s == 5.0
    assert cfg.snapshot_bucket is None
    assert not cfg.fake_buses_enabled


def test_redis_url_selects_redis_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REDIS_URL", "redis://cache:6379")
    assert AppRuntimeConfig.from_env().cache_backend == "redis"

    monkeypatch.setenv("CACHE_BACKEND", "none")
    assert AppRuntimeConfig.from_env().cache_backend == "none"


def test_unknown_backend_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CACHE_BACKEND", "memcached")
    with pytest.raises(ValueError):
        AppRuntimeConfig.from_env()


def test_fake_buses_never_in_production(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENABLE_FAKE_BUSES", "true")
    assert AppRuntimeConfig.from_env().fake_buses_enabled

    monkeypatch.setenv("APP_ENV", "production")
    cfg = AppRuntimeConfig.from_env()
    assert cfg.enable_fake_buses and not cfg.fake_buses_enabled
