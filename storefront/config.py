"""
Storefront configuration.

Settings are read from the environment (and a .env file when present).
Invalid numeric values fall back to their defaults with a warning so a
typo in the environment never prevents the storefront from starting.
"""

import os
from dataclasses import dataclass, field
from functools import cache
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from storefront.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CATALOG_API_URL = "https://fakestoreapi.com"
DEFAULT_STORAGE_KEY = "cartState"
DEFAULT_PAGE_SIZE = 8

STORAGE_BACKENDS = ("file", "memory", "redis")


def _default_storage_path() -> str:
    return str(Path.home() / ".storefront" / "storage.json")


def _parse_int(env: Mapping[str, str], name: str, default: int, minimum: int = 1) -> int:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %s", name, raw, default)
        return default
    if value < minimum:
        logger.warning("%s must be >= %s, using default %s", name, minimum, default)
        return default
    return value


def _parse_optional_float(env: Mapping[str, str], name: str) -> Optional[float]:
    raw = env.get(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, ignoring", name, raw)
        return None
    if value <= 0:
        logger.warning("%s must be positive, ignoring", name)
        return None
    return value


def _parse_bool(env: Mapping[str, str], name: str, default: bool = False) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the storefront."""
    catalog_api_url: str = DEFAULT_CATALOG_API_URL
    catalog_timeout: Optional[float] = None  # None = httpx default
    catalog_fetch_attempts: int = 1
    catalog_discard_stale_details: bool = False
    cart_storage_backend: str = "file"
    cart_storage_path: str = field(default_factory=_default_storage_path)
    cart_storage_key: str = DEFAULT_STORAGE_KEY
    cart_ttl_seconds: Optional[int] = None
    redis_url: str = ""
    redis_token: str = ""
    page_size: int = DEFAULT_PAGE_SIZE

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from a mapping (defaults to os.environ)."""
        if env is None:
            env = os.environ

        backend = env.get("CART_STORAGE_BACKEND", "file").strip().lower()
        if backend not in STORAGE_BACKENDS:
            logger.warning("Unknown CART_STORAGE_BACKEND=%r, using file", backend)
            backend = "file"

        ttl = _parse_int(env, "CART_TTL_SECONDS", 0, minimum=0)

        return cls(
            catalog_api_url=env.get("CATALOG_API_URL", DEFAULT_CATALOG_API_URL).rstrip("/"),
            catalog_timeout=_parse_optional_float(env, "CATALOG_TIMEOUT"),
            catalog_fetch_attempts=_parse_int(env, "CATALOG_FETCH_ATTEMPTS", 1),
            catalog_discard_stale_details=_parse_bool(env, "CATALOG_DISCARD_STALE_DETAILS"),
            cart_storage_backend=backend,
            cart_storage_path=env.get("CART_STORAGE_PATH") or _default_storage_path(),
            cart_storage_key=env.get("CART_STORAGE_KEY") or DEFAULT_STORAGE_KEY,
            cart_ttl_seconds=ttl or None,
            redis_url=env.get("UPSTASH_REDIS_REST_URL", ""),
            redis_token=env.get("UPSTASH_REDIS_REST_TOKEN", ""),
            page_size=_parse_int(env, "PAGE_SIZE", DEFAULT_PAGE_SIZE),
        )


@cache
def get_settings() -> Settings:
    """Get process-wide settings (loads .env on first call)."""
    load_dotenv()
    return Settings.from_env()
