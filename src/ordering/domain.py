"""Ordering bounded context — Shopping Cart, Checkout, Orders and Returns.

The cart is session-owned state persisted to a key-value store. Orders,
returns and server-side order drafts are Protean aggregates written to the
document store configured for this domain.
"""

import structlog
from protean.domain import Domain

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)
