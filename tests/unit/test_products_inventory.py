import pytest
from storefront.products import inventory
from storefront.utils.errors import InsufficientStock, InvalidVariant, ProductInactive, ProductNotFound

def test_reserve_returns_product_and_variant(store):
    product = store.add_product(variant_options=["S", "M"], stock_quantity=3)
    reserved = inventory.reserve(product["id"], 2, "M")
    assert reserved["product"]["id"] == product["id"]
    assert reserved["variant"] == "M"

def test_reserve_errors(store):
    with pytest.raises(ProductNotFound):
        inventory.reserve("missing", 1)
    inactive = store.add_product(is_active=False)
    with pytest.raises(ProductInactive):
        inventory.reserve(inactive["id"], 1)

def test_reserve_insufficient_stock_messages(store):
    empty = store.add_product(stock_quantity=0)
    low = store.add_product(stock_quantity=2)
    with pytest.raises(InsufficientStock) as exc:
        inventory.reserve(empty["id"], 1)
    assert exc.value.message == "This product is out of stock."
    with pytest.raises(InsufficientStock) as exc:
        inventory.reserve(low["id"], 3)
    assert exc.value.message == "Only 2 items available."
    assert exc.value.available == 2

def test_variant_required_iff_options(store):
    sized = store.add_product(variant_options=["S", "M"])
    with pytest.raises(InvalidVariant):
        inventory.reserve(sized["id"], 1, None)
    with pytest.raises(InvalidVariant):
        inventory.reserve(sized["id"], 1, "XXL")
    plain = store.add_product(variant_options=[])
    assert inventory.reserve(plain["id"], 1, "M")["variant"] is None

def test_decrement_until_stock_would_go_negative(store):
    product = store.add_product(stock_quantity=5)
    assert inventory.decrement(product["id"], 2) == 3
    assert inventory.decrement(product["id"], 2) == 1
    with pytest.raises(InsufficientStock) as exc:
        inventory.decrement(product["id"], 2)
    assert exc.value.available == 1
    assert store.products[product["id"]]["stock_quantity"] == 1
    assert inventory.decrement(product["id"], 1) == 0
    with pytest.raises(InsufficientStock):
        inventory.decrement(product["id"], 1)
    assert store.products[product["id"]]["stock_quantity"] == 0
