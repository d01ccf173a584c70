import pytest

from catalogue.models import Product
from ordering.cart.cart import CartStore
from ordering.cart.storage import InMemoryCartStorage


@pytest.fixture()
def storage():
    return InMemoryCartStorage()


@pytest.fixture()
def cart(storage):
    return CartStore(storage, session_key="test-cart")


@pytest.fixture()
def shirt():
    return Product(id="1", title="Cotton Shirt", price=20.0, category="men's clothing", image="shirt.png")


@pytest.fixture()
def mug():
    return Product(id="2", title="Coffee Mug", price=12.5, category="kitchen")


@pytest.fixture()
def shipping_form():
    return {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "email": "ada@example.com",
        "phone": "555-0100",
        "address": "12 Analytical Way",
        "city": "Springfield",
        "state": "IL",
        "zip_code": "62701",
    }


@pytest.fixture()
def intent(shipping_form):
    from ordering.cart.cart import CartLine, CartSnapshot
    from ordering.checkout.intent import OrderIntentBuilder

    snapshot = CartSnapshot.from_lines(
        [
            CartLine(product_id="1", title="Cotton Shirt", unit_price=20.0, quantity=2, selected_size="M"),
            CartLine(product_id="2", title="Coffee Mug", unit_price=12.5, quantity=1),
        ]
    )
    return OrderIntentBuilder().build(snapshot, shipping_form, "card", "Ring twice")
