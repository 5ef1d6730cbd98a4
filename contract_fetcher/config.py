"""Configuration helpers for the contract fetcher."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from .errors import SetupError


load_dotenv()


DEFAULT_API_URL = "https://api.etherscan.io/v2/api"
DEFAULT_REQUEST_DELAY_SECONDS = 0.25
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_BATCH_SIZE = 50

API_KEY_ENV = "ETHERSCAN_API_KEY"
DATABASE_URL_ENV = "DATABASE_URL"


def _first_non_blank(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value is not None and value.strip():
            return value.strip()
    return None


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise SetupError(f"Environment variable {name} must be a number, got {raw!r}") from exc


def normalize_database_url(url: str) -> str:
    # SQLAlchemy only understands the long form of the scheme.
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


@dataclass(slots=True)
class ExplorerSettings:
    api_key: str = field(repr=False)
    base_url: str = DEFAULT_API_URL
    request_delay_seconds: float = DEFAULT_REQUEST_DELAY_SECONDS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_env(cls, api_key: Optional[str] = None) -> "ExplorerSettings":
        resolved = _first_non_blank(api_key, os.getenv(API_KEY_ENV))
        if resolved is None:
            raise SetupError(
                f"{API_KEY_ENV} must be provided via --api-key or environment variable"
            )
        return cls(
            api_key=resolved,
            base_url=os.getenv("ETHERSCAN_API_URL", DEFAULT_API_URL),
            timeout_seconds=_float_env("ETHERSCAN_TIMEOUT", DEFAULT_TIMEOUT_SECONDS),
        )


@dataclass(slots=True)
class DatabaseSettings:
    url: str = field(repr=False)
    batch_size: int = DEFAULT_BATCH_SIZE

    @classmethod
    def from_env(
        cls,
        url: Optional[str] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> "DatabaseSettings":
        resolved = _first_non_blank(url, os.getenv(DATABASE_URL_ENV))
        if resolved is None:
            raise SetupError(
                f"{DATABASE_URL_ENV} must be provided via --database-url or environment variable"
            )
        if batch_size < 1:
            raise SetupError(f"Batch size must be at least 1, got {batch_size}")
        return cls(url=normalize_database_url(resolved), batch_size=batch_size)
