"""Admission policy and environment loading utilities."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Optional


def _load_dotenv() -> None:
    env_path = Path(".env")
    if not env_path.exists():
        return
    for line in env_path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


_load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Invalid integer for environment variable: {name}") from exc


def _env_float(name: str, default: Optional[float]) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise RuntimeError(f"Invalid number for environment variable: {name}") from exc


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class AdmissionPolicy:
    """Tunable limits for one admission engine.

    ``stale_after_seconds`` falls back to ten submission windows when left
    unset. All durations are seconds.
    """

    max_per_window: int = 6
    window_seconds: float = 60.0
    max_violations: int = 3
    block_seconds: float = 300.0
    max_capacity: int = 50
    sweep_interval_seconds: float = 300.0
    stale_after_seconds: Optional[float] = field(default=None)
    enforce: bool = True

    def __post_init__(self) -> None:
        for name in ("max_per_window", "max_violations", "max_capacity"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1")
        for name in ("window_seconds", "block_seconds", "sweep_interval_seconds"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        if self.stale_after_seconds is None:
            object.__setattr__(self, "stale_after_seconds", self.window_seconds * 10)
        elif self.stale_after_seconds <= 0:
            raise ValueError("stale_after_seconds must be positive")


@dataclass(frozen=True)
class Settings:
    """Runtime configuration derived from environment variables."""

    max_per_window: int = 6
    window_seconds: float = 60.0
    max_violations: int = 3
    block_seconds: float = 300.0
    max_capacity: int = 50
    sweep_interval_seconds: float = 300.0
    stale_after_seconds: Optional[float] = None
    enforce: bool = True
    request_limit: int = 120
    request_window_seconds: int = 60
    log_level: str = "INFO"

    def policy(self) -> AdmissionPolicy:
        return AdmissionPolicy(
            max_per_window=self.max_per_window,
            window_seconds=self.window_seconds,
            max_violations=self.max_violations,
            block_seconds=self.block_seconds,
            max_capacity=self.max_capacity,
            sweep_interval_seconds=self.sweep_interval_seconds,
            stale_after_seconds=self.stale_after_seconds,
            enforce=self.enforce,
        )

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            max_per_window=_env_int("ADMISSION_MAX_PER_WINDOW", 6),
            window_seconds=_env_float("ADMISSION_WINDOW_SECONDS", 60.0),
            max_violations=_env_int("ADMISSION_MAX_VIOLATIONS", 3),
            block_seconds=_env_float("ADMISSION_BLOCK_SECONDS", 300.0),
            max_capacity=_env_int("ADMISSION_MAX_CAPACITY", 50),
            sweep_interval_seconds=_env_float("ADMISSION_SWEEP_INTERVAL_SECONDS", 300.0),
            stale_after_seconds=_env_float("ADMISSION_STALE_AFTER_SECONDS", None),
            enforce=_env_bool("ADMISSION_ENFORCE", True),
            request_limit=_env_int("ADMISSION_REQUEST_LIMIT", 120),
            request_window_seconds=_env_int("ADMISSION_REQUEST_WINDOW_SECONDS", 60),
            log_level=os.getenv("ADMISSION_LOG_LEVEL", "INFO").strip().upper() or "INFO",
        )


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings.from_env()
