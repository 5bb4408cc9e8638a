from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Literal

CacheBackend = Literal["redis", "memory", "none"]

_CACHE_BACKENDS: tuple[CacheBackend, ...] = ("redis", "memory", "none")


def env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True, slots=True)
class AppRuntimeConfig:
    app_env: str
    cache_backend: CacheBackend
    cache_max_value_bytes: int
    cache_shutdown_timeout_s: float
    snapshot_bucket: str | None
    enable_fake_buses: bool

    @staticmethod
    def from_env() -> "AppRuntimeConfig":
        """Read the runtime configuration.

        Env vars:
          - APP_ENV (default: development)
          - CACHE_BACKEND: redis | memory | none (default: redis when
            REDIS_URL is set, memory otherwise)
          - CACHE_MAX_VALUE_BYTES (default: 100 MiB)
          - CACHE_SHUTDOWN_TIMEOUT_S (default: 5)
          - TRANSIT_SNAPSHOT_BUCKET (S3 snapshot instead of the local file)
          - ENABLE_FAKE_BUSES (ignored in production)
        """

        backend = (os.getenv("CACHE_BACKEND") or "").strip().lower()
        if not backend:
            backend = "redis" if os.getenv("REDIS_URL") else "memory"
        if backend not in _CACHE_BACKENDS:
            raise ValueError(
                f"Invalid CACHE_BACKEND: {backend}. Use one of {', '.join(_CACHE_BACKENDS)}"
            )

        bucket = (os.getenv("TRANSIT_SNAPSHOT_BUCKET") or "").strip() or None

        return AppRuntimeConfig(
            app_env=os.getenv("APP_ENV", "development").strip().lower(),
            cache_backend=backend,  # type: ignore[arg-type]
            cache_max_value_bytes=int(
                os.getenv("CACHE_MAX_VALUE_BYTES", str(100 * 1024 * 1024))
            ),
            cache_shutdown_timeout_s=float(os.getenv("CACHE_SHUTDOWN_TIMEOUT_S", "5")),
            snapshot_bucket=bucket,
            enable_fake_buses=env_bool("ENABLE_FAKE_BUSES", False),
        )

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def fake_buses_enabled(self) -> bool:
        return self.enable_fake_buses and not self.is_production
