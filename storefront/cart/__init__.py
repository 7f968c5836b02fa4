"""Cart package: models, storage, and store facade."""
from .models import CartEntry, CartState
from .service import CartStore
from .storage import (
    CartPersistence,
    FileStorage,
    KeyValueStorage,
    MemoryStorage,
    RedisStorage,
    create_storage,
)

__all__ = [
    "CartEntry",
    "CartState",
    "CartStore",
    "CartPersistence",
    "KeyValueStorage",
    "MemoryStorage",
    "FileStorage",
    "RedisStorage",
    "create_storage",
]
