"""Cart storage adapters.

Provides build_storage() to pick an implementation from settings:
- InMemoryCartStorage for tests
- FileCartStorage for a durable local session store
"""

from ordering.cart.storage.fake_adapter import InMemoryCartStorage
from ordering.cart.storage.file_adapter import FileCartStorage
from ordering.cart.storage.port import CartStorage, CartStorageError

__all__ = [
    "CartStorage",
    "CartStorageError",
    "FileCartStorage",
    "InMemoryCartStorage",
    "build_storage",
]


def build_storage(settings) -> CartStorage:
    """Return the storage configured for this environment."""
    if settings.ENVIRONMENT == "test":
        return InMemoryCartStorage()
    return FileCartStorage(settings.CART_STORAGE_DIR)
