"""Customer aggregate root with its Address entities.

An order references a customer's addresses by id, so address ownership is
answered here (`owns_address`) rather than by the order.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, HasMany, String

from commerce.customer.events import AddressAdded, AddressRemoved, CustomerRegistered
from commerce.domain import commerce
from commerce.shared.email import EmailAddress


class AddressType(Enum):
    BILLING = "billing"
    SHIPPING = "shipping"


@commerce.entity(part_of="Customer")
class Address:
    address_type = String(choices=AddressType, default=AddressType.SHIPPING.value)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)


@commerce.aggregate
class Customer:
    """A shopper with a unique email, a set of addresses, and one shopping cart.

    Email uniqueness spans customers and is checked by the registration
    handler; this aggregate only guarantees the address is well-formed.
    """

    email = String(required=True, max_length=254)
    first_name = String(required=True, max_length=100)
    last_name = String(required=True, max_length=100)
    phone = String(max_length=20)
    addresses = HasMany(Address)
    created_at = DateTime()

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    @classmethod
    def register(cls, email, first_name, last_name, phone=None):
        normalized = EmailAddress(address=email.strip().lower()).address
        now = datetime.now(UTC)

        customer = cls(
            email=normalized,
            first_name=first_name,
            last_name=last_name,
            phone=phone,
            created_at=now,
        )
        customer.raise_(
            CustomerRegistered(
                customer_id=str(customer.id),
                email=normalized,
                first_name=first_name,
                last_name=last_name,
                registered_at=now,
            )
        )
        return customer

    def add_address(self, street, city, postal_code, country, address_type=AddressType.SHIPPING.value, state=None):
        address = Address(
            address_type=address_type,
            street=street,
            city=city,
            state=state,
            postal_code=postal_code,
            country=country,
        )
        self.add_addresses(address)

        self.raise_(
            AddressAdded(
                customer_id=str(self.id),
                address_id=str(address.id),
                address_type=address_type,
                city=city,
                country=country,
            )
        )
        return address

    def remove_address(self, address_id):
        address = self.find_address(address_id)
        if address is None:
            raise ValidationError({"addresses": [f"Address {address_id} not found"]})

        self.remove_addresses(address)
        self.raise_(AddressRemoved(customer_id=str(self.id), address_id=str(address_id)))

    def find_address(self, address_id):
        return next((a for a in self.addresses if str(a.id) == str(address_id)), None)

    def owns_address(self, address_id):
        return address_id is not None and self.find_address(address_id) is not None
