"""Customer address book — commands and handler."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from commerce.customer.customer import AddressType, Customer
from commerce.domain import commerce
from commerce.errors import ConstraintViolation


@commerce.command(part_of="Customer")
class AddAddress:
    customer_id = Identifier(required=True)
    address_type = String(choices=AddressType, default=AddressType.SHIPPING.value)
    street = String(required=True, max_length=255)
    city = String(required=True, max_length=100)
    state = String(max_length=100)
    postal_code = String(required=True, max_length=20)
    country = String(required=True, max_length=100)


@commerce.command(part_of="Customer")
class RemoveAddress:
    customer_id = Identifier(required=True)
    address_id = Identifier(required=True)


@commerce.command_handler(part_of=Customer)
class AddressBookHandler:
    @handle(AddAddress)
    def add_address(self, command):
        repo = current_domain.repository_for(Customer)
        customer = repo.get(command.customer_id)
        address = customer.add_address(
            street=command.street,
            city=command.city,
            state=command.state,
            postal_code=command.postal_code,
            country=command.country,
            address_type=command.address_type,
        )
        repo.add(customer)
        return str(address.id)

    @handle(RemoveAddress)
    def remove_address(self, command):
        from commerce.order.order import Order

        # Orders point at addresses by id; keep the ones already used
        orders = current_domain.repository_for(Order)._dao.query.filter(customer_id=str(command.customer_id)).all().items
        for order in orders:
            if str(command.address_id) in (str(order.shipping_address_id), str(order.billing_address_id)):
                raise ConstraintViolation(f"Address {command.address_id} is referenced by order {order.id}")

        repo = current_domain.repository_for(Customer)
        customer = repo.get(command.customer_id)
        customer.remove_address(command.address_id)
        repo.add(customer)
