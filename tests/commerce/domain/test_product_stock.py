import pytest
from commerce.product.events import StockLevelChanged
from commerce.product.product import Product
from protean.exceptions import ValidationError


def _product(stock_quantity=5):
    product = Product.add(
        name="Widget",
        sku="widget-1",
        category_id="cat-1",
        price=10.0,
        stock_quantity=stock_quantity,
    )
    product._events.clear()
    return product


class TestProductCreation:
    def test_sku_is_uppercased(self):
        assert _product().sku == "WIDGET-1"

    def test_negative_price_is_rejected(self):
        with pytest.raises(ValidationError):
            Product.add(name="Widget", sku="W-1", category_id="cat-1", price=-1.0)

    def test_negative_stock_is_rejected(self):
        with pytest.raises(ValidationError):
            _product(stock_quantity=-1)


class TestStockChanges:
    def test_decrement(self):
        product = _product()
        assert product.change_stock(-3, "out") == 2
        assert product.stock_quantity == 2

    def test_decrement_to_zero_is_allowed(self):
        product = _product()
        product.change_stock(-5, "out")
        assert product.stock_quantity == 0

    def test_stock_cannot_go_negative(self):
        product = _product()
        with pytest.raises(ValidationError) as exc_info:
            product.change_stock(-6, "out")

        assert "stock_quantity" in exc_info.value.messages
        assert product.stock_quantity == 5
        assert product.revision == 0

    def test_each_change_bumps_revision(self):
        product = _product()
        product.change_stock(-1, "out")
        product.change_stock(4, "in")
        assert product.revision == 2

    def test_change_raises_event(self):
        product = _product()
        product.change_stock(-2, "out")

        event = product._events[-1]
        assert isinstance(event, StockLevelChanged)
        assert event.previous_stock_level == 5
        assert event.new_stock_level == 3

    def test_has_stock_for(self):
        product = _product()
        assert product.has_stock_for(5)
        assert not product.has_stock_for(6)


class TestCatalogueDetails:
    def test_change_price_rounds_to_cents(self):
        product = _product()
        product.change_price(12.345)
        assert product.price == 12.35

    def test_set_attribute_replaces_existing_value(self):
        product = _product()
        product.set_attribute("color", "red")
        product.set_attribute("color", "blue")

        assert len(product.attributes) == 1
        assert product.attributes[0].attribute_value == "blue"

    def test_primary_image(self):
        product = _product()
        product.add_image("https://img.example.com/a.png")
        primary = product.add_image("https://img.example.com/b.png", is_primary=True)

        assert product.primary_image.id == primary.id

    def test_no_primary_image(self):
        product = _product()
        product.add_image("https://img.example.com/a.png")
        assert product.primary_image is None

    def test_deactivate_then_activate(self):
        product = _product()
        product.deactivate()
        assert product.is_active is False

        with pytest.raises(ValidationError):
            product.deactivate()

        product.activate()
        assert product.is_active is True
