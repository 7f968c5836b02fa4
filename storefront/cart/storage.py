"""
Durable storage for the cart snapshot.

The cart is kept under a single string key holding a JSON document
({"items": {...}}). Backends only move strings in and out; the
CartPersistence adapter owns (de)serialization and absorbs every failure,
so a broken medium never blocks a cart mutation.
"""
import json
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from upstash_redis import Redis

from storefront.config import Settings, _default_storage_path
from storefront.errors import (
    ERROR_STORAGE_CORRUPTED,
    ERROR_STORAGE_UNAVAILABLE,
    PersistenceError,
)
from storefront.logging import get_logger
from .models import CartState

logger = get_logger(__name__)


class KeyValueStorage(ABC):
    """String-keyed key/value medium.

    Implementations raise PersistenceError when the medium cannot be read
    or written; they never return partial data.
    """

    @abstractmethod
    def get_item(self, key: str) -> Optional[str]:
        """Return the stored value, or None when the key is absent."""

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def remove_item(self, key: str) -> None:
        """Delete key; absent keys are ignored."""


class MemoryStorage(KeyValueStorage):
    """Process-local storage. Survives store re-creation, not restarts."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class FileStorage(KeyValueStorage):
    """
    Local durable storage backed by one JSON file.

    The file maps keys to string values, mirroring a browser's
    localStorage. Writes go through a temp file and os.replace so a crash
    mid-write leaves the previous document intact.
    """

    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)

    def _read_document(self) -> Dict[str, str]:
        try:
            data = self.path.read_bytes()
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise PersistenceError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}", raw_error=e) from e

        try:
            raw = data.decode("utf-8")
            document = json.loads(raw) if raw.strip() else {}
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise PersistenceError(f"{ERROR_STORAGE_CORRUPTED}: {e}", raw_error=e) from e
        if not isinstance(document, dict):
            raise PersistenceError(ERROR_STORAGE_CORRUPTED)
        return document

    def _write_document(self, document: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".storage-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(document, fh)
                os.replace(tmp_path, self.path)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise PersistenceError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}", raw_error=e) from e

    def get_item(self, key: str) -> Optional[str]:
        value = self._read_document().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        try:
            document = self._read_document()
        except PersistenceError as e:
            if isinstance(e.raw_error, OSError):
                raise
            # Unreadable document: start over rather than fail every write
            logger.warning(f"Overwriting corrupted storage file {self.path}")
            document = {}
        document[key] = value
        self._write_document(document)

    def remove_item(self, key: str) -> None:
        document = self._read_document()
        if key in document:
            del document[key]
            self._write_document(document)


class RedisStorage(KeyValueStorage):
    """Upstash Redis backend for carts shared between processes."""

    def __init__(self, client: Redis, ttl_seconds: Optional[int] = None):
        self.redis = client
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisStorage":
        if not settings.redis_url or not settings.redis_token:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        return cls(Redis(url=settings.redis_url, token=settings.redis_token), settings.cart_ttl_seconds)

    def get_item(self, key: str) -> Optional[str]:
        try:
            value = self.redis.get(key)
        except Exception as e:
            raise PersistenceError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}", raw_error=e) from e
        return value if value else None

    def set_item(self, key: str, value: str) -> None:
        try:
            if self.ttl_seconds:
                self.redis.set(key, value, ex=self.ttl_seconds)
            else:
                self.redis.set(key, value)
        except Exception as e:
            raise PersistenceError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}", raw_error=e) from e

    def remove_item(self, key: str) -> None:
        try:
            self.redis.delete(key)
        except Exception as e:
            raise PersistenceError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}", raw_error=e) from e


def create_storage(settings: Settings) -> KeyValueStorage:
    """Build the storage backend selected by CART_STORAGE_BACKEND."""
    if settings.cart_storage_backend == "memory":
        return MemoryStorage()
    if settings.cart_storage_backend == "redis":
        return RedisStorage.from_settings(settings)
    return FileStorage(settings.cart_storage_path or _default_storage_path())


class CartPersistence:
    """
    Best-effort persistence of the cart snapshot.

    load() never raises: absent, corrupt or unreachable storage all read as
    "no saved cart". save() never raises either; it logs and reports False.
    """

    def __init__(self, storage: KeyValueStorage, key: str = "cartState"):
        self.storage = storage
        self.key = key

    def load(self) -> Optional[CartState]:
        """Read the stored cart, or None."""
        try:
            raw = self.storage.get_item(self.key)
        except Exception as e:
            logger.error(f"Failed to read cart from storage: {e}")
            return None

        if not raw:
            return None

        try:
            return CartState.from_dict(json.loads(raw))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            # Corrupted snapshot - drop it and start with an empty cart
            logger.warning(f"Corrupted cart snapshot under {self.key!r}: {e}")
            self._discard()
            return None

    def save(self, state: CartState) -> bool:
        """Write the cart snapshot. Returns False when the write failed."""
        try:
            payload = json.dumps(state.to_dict())
            self.storage.set_item(self.key, payload)
            return True
        except Exception as e:
            logger.error(f"Failed to save cart to storage: {e}")
            return False

    def _discard(self) -> None:
        try:
            self.storage.remove_item(self.key)
        except Exception as e:
            logger.warning(f"Failed to discard corrupted cart snapshot: {e}")
