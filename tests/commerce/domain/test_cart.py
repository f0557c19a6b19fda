import pytest
from commerce.cart.cart import ShoppingCart
from commerce.cart.events import CartCheckedOut
from protean.exceptions import ValidationError


@pytest.fixture
def cart():
    cart = ShoppingCart.create(customer_id="cust-1")
    cart._events.clear()
    return cart


class TestCartItems:
    def test_add_item(self, cart):
        item = cart.add_item("prod-1", 2)
        assert item.quantity == 2
        assert len(cart.items) == 1

    def test_adding_same_product_grows_existing_line(self, cart):
        first = cart.add_item("prod-1", 2)
        second = cart.add_item("prod-1", 3)

        assert len(cart.items) == 1
        assert first.id == second.id
        assert cart.items[0].quantity == 5

    def test_quantity_must_be_positive(self, cart):
        with pytest.raises(ValidationError):
            cart.add_item("prod-1", 0)

    def test_update_quantity(self, cart):
        item = cart.add_item("prod-1", 2)
        cart.update_item_quantity(item.id, 7)
        assert cart.find_item(item.id).quantity == 7

    def test_update_unknown_item(self, cart):
        with pytest.raises(ValidationError):
            cart.update_item_quantity("missing", 1)

    def test_remove_item(self, cart):
        item = cart.add_item("prod-1", 2)
        cart.remove_item(item.id)
        assert cart.items == []

    def test_remove_product_ignores_absent_product(self, cart):
        cart.add_item("prod-1", 2)
        cart.remove_product("prod-2")
        assert len(cart.items) == 1


class TestCheckout:
    def test_check_out_removes_only_ordered_lines(self, cart):
        cart.add_item("prod-1", 2)
        cart.add_item("prod-2", 1)
        cart._events.clear()

        cart.check_out("ord-1", ["prod-1"])

        assert [str(i.product_id) for i in cart.items] == ["prod-2"]
        assert isinstance(cart._events[-1], CartCheckedOut)
