"""In-memory cart storage for development and testing."""

from ordering.cart.storage.port import CartStorage, CartStorageError


class InMemoryCartStorage(CartStorage):
    """Dictionary-backed storage that can be told to fail writes."""

    def __init__(self) -> None:
        self.documents: dict[str, str] = {}
        self.fail_writes: bool = False
        self.calls: list[dict] = []

    def configure(self, fail_writes: bool) -> None:
        self.fail_writes = fail_writes

    def read(self, key: str) -> str | None:
        self.calls.append({"method": "read", "key": key})
        return self.documents.get(key)

    def write(self, key: str, data: str) -> None:
        self.calls.append({"method": "write", "key": key})
        if self.fail_writes:
            raise CartStorageError(f"Write rejected for {key}")
        self.documents[key] = data

    def delete(self, key: str) -> None:
        self.calls.append({"method": "delete", "key": key})
        if self.fail_writes:
            raise CartStorageError(f"Delete rejected for {key}")
        self.documents.pop(key, None)
