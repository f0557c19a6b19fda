"""Domain events for the Customer aggregate."""

from protean.fields import DateTime, Identifier, String

from commerce.domain import commerce


@commerce.event(part_of="Customer")
class CustomerRegistered:
    __version__ = 1

    customer_id = Identifier(required=True)
    email = String(required=True)
    first_name = String(required=True)
    last_name = String(required=True)
    registered_at = DateTime(required=True)


@commerce.event(part_of="Customer")
class AddressAdded:
    __version__ = 1

    customer_id = Identifier(required=True)
    address_id = Identifier(required=True)
    address_type = String(required=True)
    city = String(required=True)
    country = String(required=True)


@commerce.event(part_of="Customer")
class AddressRemoved:
    __version__ = 1

    customer_id = Identifier(required=True)
    address_id = Identifier(required=True)
