"""Cart storage port (abstract interface).

Durable key-value storage for serialized cart snapshots. Adapters must make
``write`` atomic: after a failed write the previously stored value remains.
"""

from abc import ABC, abstractmethod


class CartStorageError(Exception):
    """Raised by adapters when the underlying medium fails."""


class CartStorage(ABC):
    """Abstract cart storage interface."""

    @abstractmethod
    def read(self, key: str) -> str | None:
        """Return the stored document for ``key``, or None when absent."""
        ...

    @abstractmethod
    def write(self, key: str, data: str) -> None:
        """Replace the document stored under ``key``."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the document stored under ``key``. Missing keys are ignored."""
        ...
