from datetime import UTC, datetime, timedelta

import pytest


@pytest.fixture(scope="session")
def _commerce_domain():
    """Initialize the commerce domain once per session."""
    from commerce.domain import commerce

    commerce.init()
    return commerce


@pytest.fixture(scope="session", autouse=True)
def setup_db(_commerce_domain):
    from commerce.utils.db import drop_db, setup_db

    setup_db(_commerce_domain)

    yield

    drop_db(_commerce_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_commerce_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _commerce_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


class Store:
    """Builds store data through the same commands the application uses."""

    @staticmethod
    def process(command):
        from protean import current_domain

        return current_domain.process(command, asynchronous=False)

    def register_customer(self, email="alice@example.com", first_name="Alice", last_name="Smith"):
        """Register a customer with one address and return (customer_id, address_id)."""
        from commerce.customer.addresses import AddAddress
        from commerce.customer.registration import RegisterCustomer

        customer_id = self.process(RegisterCustomer(email=email, first_name=first_name, last_name=last_name))
        address_id = self.process(
            AddAddress(
                customer_id=customer_id,
                street="1 Main St",
                city="Springfield",
                postal_code="12345",
                country="US",
            )
        )
        return customer_id, address_id

    def create_category(self, name="Gadgets", parent_category_id=None):
        from commerce.category.management import CreateCategory

        return self.process(CreateCategory(name=name, parent_category_id=parent_category_id))

    def add_product(self, category_id, sku="WIDGET-1", price=10.0, stock_quantity=5, name=None):
        from commerce.product.creation import AddProduct

        return self.process(
            AddProduct(
                name=name or sku.title(),
                sku=sku,
                category_id=category_id,
                price=price,
                stock_quantity=stock_quantity,
            )
        )

    def create_coupon(self, code="SAVE10", discount_type="percentage", discount_value=10.0, **overrides):
        from commerce.coupon.management import CreateCoupon

        now = datetime.now(UTC)
        fields = {
            "code": code,
            "discount_type": discount_type,
            "discount_value": discount_value,
            "start_date": now - timedelta(days=1),
            "end_date": now + timedelta(days=30),
        }
        fields.update(overrides)
        return self.process(CreateCoupon(**fields))

    def place_order(self, customer, items=None, **overrides):
        """Place an order for ``customer`` (a (customer_id, address_id) pair)."""
        import json

        from commerce.order.placement import PlaceOrder

        customer_id, address_id = customer
        fields = {
            "customer_id": customer_id,
            "shipping_address_id": address_id,
            "billing_address_id": address_id,
        }
        if items is not None:
            fields["items"] = json.dumps(items)
        if "coupon_codes" in overrides:
            overrides["coupon_codes"] = json.dumps(overrides["coupon_codes"])
        fields.update(overrides)
        return self.process(PlaceOrder(**fields))


@pytest.fixture
def store():
    return Store()


@pytest.fixture
def customer(store):
    """A registered customer with one address: (customer_id, address_id)."""
    return store.register_customer()


@pytest.fixture
def category_id(store):
    return store.create_category()


@pytest.fixture
def widget_id(store, category_id):
    """WIDGET-1 priced 10.00 with 5 in stock."""
    return store.add_product(category_id)
