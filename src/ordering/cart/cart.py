"""Shopping cart — session-owned cart state with derived totals.

The cart belongs to a single browsing session. ``CartStore`` holds the
authoritative lines, recomputes totals on every mutation and writes the whole
snapshot to a ``CartStorage`` under a fixed session key, so the cart survives
a reload. Snapshots handed out are immutable values.
"""

import json
from dataclasses import dataclass, replace

import structlog
from protean.exceptions import ValidationError

from ordering.cart.actions import AddLine, CartAction, ClearCart, RemoveLine, SetQuantity
from ordering.cart.storage import CartStorage, CartStorageError
from ordering.cart.variant import variant_key

logger = structlog.get_logger(__name__)

DEFAULT_SESSION_KEY = "storefront-cart"
SNAPSHOT_VERSION = 1


class MalformedSnapshotError(ValueError):
    """Raised when a persisted cart document cannot be turned back into a snapshot."""


# ---------------------------------------------------------------------------
# Values
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class CartLine:
    """One product variant in the cart, with its unit price captured when added."""

    product_id: str
    title: str
    unit_price: float
    quantity: int = 1
    selected_size: str | None = None
    selected_color: str | None = None
    image: str | None = None
    variant_id: str = ""

    def __post_init__(self):
        if not str(self.product_id):
            raise ValueError("product_id is required")
        if isinstance(self.unit_price, bool) or not isinstance(self.unit_price, (int, float)) or self.unit_price <= 0:
            raise ValueError(f"unit_price must be positive, got {self.unit_price!r}")
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity < 1:
            raise ValueError(f"quantity must be an integer >= 1, got {self.quantity!r}")

        expected = variant_key(self.product_id, self.selected_size, self.selected_color)
        if not self.variant_id:
            object.__setattr__(self, "variant_id", expected)
        elif self.variant_id != expected:
            raise ValueError(f"variant_id {self.variant_id!r} does not match {expected!r}")

    @property
    def line_total(self) -> float:
        return round(self.unit_price * self.quantity, 2)

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "variant_id": self.variant_id,
            "title": self.title,
            "unit_price": self.unit_price,
            "quantity": self.quantity,
            "selected_size": self.selected_size,
            "selected_color": self.selected_color,
            "image": self.image,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        return cls(
            product_id=str(data["product_id"]),
            title=data["title"],
            unit_price=data["unit_price"],
            quantity=data["quantity"],
            selected_size=data.get("selected_size"),
            selected_color=data.get("selected_color"),
            image=data.get("image"),
            variant_id=data.get("variant_id") or "",
        )


@dataclass(frozen=True)
class CartSnapshot:
    """Immutable view of the cart. Totals are derived from ``lines``."""

    lines: tuple[CartLine, ...] = ()
    total_items: int = 0
    total_amount: float = 0.0

    @classmethod
    def from_lines(cls, lines) -> "CartSnapshot":
        lines = tuple(lines)
        seen = set()
        for line in lines:
            if line.variant_id in seen:
                raise ValueError(f"Duplicate cart line for variant {line.variant_id!r}")
            seen.add(line.variant_id)

        return cls(
            lines=lines,
            total_items=sum(line.quantity for line in lines),
            total_amount=round(sum(line.unit_price * line.quantity for line in lines), 2),
        )

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def line_for(self, variant_id: str) -> CartLine | None:
        return next((line for line in self.lines if line.variant_id == variant_id), None)

    def to_json(self) -> str:
        return json.dumps(
            {
                "version": SNAPSHOT_VERSION,
                "lines": [line.to_dict() for line in self.lines],
            }
        )

    @classmethod
    def from_json(cls, document: str) -> "CartSnapshot":
        """Rebuild a snapshot from its persisted form, recomputing totals."""
        try:
            data = json.loads(document)
            if not isinstance(data, dict) or data.get("version") != SNAPSHOT_VERSION:
                raise MalformedSnapshotError(f"Unsupported cart document: {str(document)[:80]!r}")
            raw_lines = data["lines"]
            if not isinstance(raw_lines, list):
                raise MalformedSnapshotError("Cart document lines must be a list")
            return cls.from_lines(CartLine.from_dict(item) for item in raw_lines)
        except MalformedSnapshotError:
            raise
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise MalformedSnapshotError(str(exc)) from exc


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------
class CartStore:
    """The authoritative cart of one browsing session.

    Construct one per session and pass it to whatever needs the cart. All
    mutations go through ``dispatch``; the convenience methods only build the
    matching action.
    """

    def __init__(self, storage: CartStorage, session_key: str = DEFAULT_SESSION_KEY):
        self._storage = storage
        self._session_key = session_key
        self._snapshot = CartSnapshot()
        self._handlers = {
            AddLine: self._add_line,
            RemoveLine: self._remove_line,
            SetQuantity: self._set_quantity,
            ClearCart: self._clear,
        }
        self._load()

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def snapshot(self) -> CartSnapshot:
        return self._snapshot

    @property
    def total_items(self) -> int:
        return self._snapshot.total_items

    @property
    def total_amount(self) -> float:
        return self._snapshot.total_amount

    def quantity_of(self, product_id, size: str | None = None, color: str | None = None) -> int:
        line = self._snapshot.line_for(variant_key(product_id, size, color))
        return line.quantity if line else 0

    def contains(self, product_id, size: str | None = None, color: str | None = None) -> bool:
        return self.quantity_of(product_id, size, color) > 0

    # -------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------
    def add_line(self, product, size: str | None = None, color: str | None = None) -> CartSnapshot:
        return self.dispatch(AddLine(product=product, size=size, color=color))

    def remove_line(self, variant_id: str) -> CartSnapshot:
        return self.dispatch(RemoveLine(variant_id=variant_id))

    def set_quantity(self, variant_id: str, quantity: int) -> CartSnapshot:
        return self.dispatch(SetQuantity(variant_id=variant_id, quantity=quantity))

    def clear(self) -> CartSnapshot:
        return self.dispatch(ClearCart())

    def dispatch(self, action: CartAction) -> CartSnapshot:
        """Apply ``action``, recompute totals and persist the result."""
        handler = self._handlers.get(type(action))
        if handler is None:
            raise TypeError(f"Unknown cart action: {action!r}")

        lines = handler(action)
        self._snapshot = CartSnapshot.from_lines(lines)

        if isinstance(action, ClearCart):
            self._forget()
        else:
            self._persist()

        logger.debug(
            "cart_updated",
            action=type(action).__name__,
            total_items=self._snapshot.total_items,
            total_amount=self._snapshot.total_amount,
        )
        return self._snapshot

    def _add_line(self, action: AddLine) -> list[CartLine]:
        product = action.product
        vid = variant_key(product.id, action.size, action.color)
        lines = list(self._snapshot.lines)

        for index, line in enumerate(lines):
            if line.variant_id == vid:
                lines[index] = replace(line, quantity=line.quantity + 1)
                return lines

        try:
            new_line = CartLine(
                product_id=str(product.id),
                title=product.title,
                unit_price=product.price,
                quantity=1,
                selected_size=action.size,
                selected_color=action.color,
                image=getattr(product, "image", None),
            )
        except ValueError as exc:
            raise ValidationError({"product": [str(exc)]}) from exc

        lines.append(new_line)
        return lines

    def _remove_line(self, action: RemoveLine) -> list[CartLine]:
        return [line for line in self._snapshot.lines if line.variant_id != action.variant_id]

    def _set_quantity(self, action: SetQuantity) -> list[CartLine]:
        quantity = action.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise ValidationError({"quantity": [f"Quantity must be an integer, got {quantity!r}"]})
        if quantity <= 0:
            return self._remove_line(RemoveLine(variant_id=action.variant_id))

        return [
            replace(line, quantity=quantity) if line.variant_id == action.variant_id else line
            for line in self._snapshot.lines
        ]

    def _clear(self, action: ClearCart) -> list[CartLine]:  # noqa: ARG002
        return []

    # -------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------
    def _persist(self) -> None:
        try:
            self._storage.write(self._session_key, self._snapshot.to_json())
        except CartStorageError:
            logger.exception("cart_persist_failed", session_key=self._session_key)

    def _forget(self) -> None:
        try:
            self._storage.delete(self._session_key)
        except CartStorageError:
            logger.exception("cart_forget_failed", session_key=self._session_key)

    def _load(self) -> None:
        try:
            document = self._storage.read(self._session_key)
        except CartStorageError:
            logger.exception("cart_load_failed", session_key=self._session_key)
            return

        if document is None:
            return

        try:
            self._snapshot = CartSnapshot.from_json(document)
        except MalformedSnapshotError as exc:
            logger.warning("cart_snapshot_discarded", session_key=self._session_key, reason=str(exc))
            self._forget()
            return

        logger.debug("cart_restored", session_key=self._session_key, total_items=self._snapshot.total_items)
