"""Pydantic response schemas for the Catalogue API."""

from pydantic import BaseModel


class RatingSchema(BaseModel):
    rate: float | None = None
    count: int | None = None


class ProductResponse(BaseModel):
    id: str
    title: str
    price: float
    category: str
    description: str
    image: str | None = None
    rating: RatingSchema

    @classmethod
    def from_product(cls, product) -> "ProductResponse":
        return cls(
            id=product.id,
            title=product.title,
            price=product.price,
            category=product.category,
            description=product.description,
            image=product.image,
            rating=RatingSchema(rate=product.rating_rate, count=product.rating_count),
        )
