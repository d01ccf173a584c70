"""Read-only product data as served by the catalogue API."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Product:
    """A catalogue product. Prices are in the store currency's major unit."""

    id: str
    title: str
    price: float
    category: str = ""
    description: str = ""
    image: str | None = None
    rating_rate: float | None = None
    rating_count: int | None = None

    @classmethod
    def from_api(cls, data: dict) -> "Product":
        rating = data.get("rating") or {}
        return cls(
            id=str(data["id"]),
            title=data["title"],
            price=float(data["price"]),
            category=data.get("category") or "",
            description=data.get("description") or "",
            image=data.get("image"),
            rating_rate=rating.get("rate"),
            rating_count=rating.get("count"),
        )
