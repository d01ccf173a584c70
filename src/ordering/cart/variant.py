"""Variant identity for cart lines.

A product sold in several sizes and colors is tracked as one cart line per
(product, size, color) combination. Sizes and colors come from small
enumerated sets that never contain the separator, so plain concatenation is
collision-free.
"""

VARIANT_SEPARATOR = "-"


def variant_key(product_id, size: str | None = None, color: str | None = None) -> str:
    """Return the stable identity of a product variant.

    Absent size or color contribute an empty segment, so
    ``variant_key(7)`` is ``"7--"`` and equal inputs always yield equal keys.
    """
    return VARIANT_SEPARATOR.join((str(product_id), size or "", color or ""))
