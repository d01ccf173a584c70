"""Cart actions — the tagged commands consumed by ``CartStore.dispatch``.

Every cart mutation is expressed as one of these immutable values, so there
is exactly one mutation path and derived totals are always recomputed.
"""

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class AddLine:
    """Add one unit of a product variant to the cart."""

    product: Any
    size: str | None = None
    color: str | None = None


@dataclass(frozen=True)
class RemoveLine:
    """Remove a variant's line from the cart."""

    variant_id: str


@dataclass(frozen=True)
class SetQuantity:
    """Set a variant's quantity; zero or less removes the line."""

    variant_id: str
    quantity: int


@dataclass(frozen=True)
class ClearCart:
    """Empty the cart and forget the persisted snapshot."""


CartAction = Union[AddLine, RemoveLine, SetQuantity, ClearCart]
