"""Customer registration — command and handler.

Registering a customer also opens the customer's one and only shopping cart.
"""

from protean import handle
from protean.fields import String
from protean.utils.globals import current_domain

from commerce.cart.cart import ShoppingCart
from commerce.customer.customer import Customer
from commerce.domain import commerce, logger
from commerce.errors import ConstraintViolation


@commerce.command(part_of="Customer")
class RegisterCustomer:
    email = String(required=True, max_length=254)
    first_name = String(required=True, max_length=100)
    last_name = String(required=True, max_length=100)
    phone = String(max_length=20)


@commerce.command_handler(part_of=Customer)
class RegisterCustomerHandler:
    @handle(RegisterCustomer)
    def register_customer(self, command):
        customer = Customer.register(
            email=command.email,
            first_name=command.first_name,
            last_name=command.last_name,
            phone=command.phone,
        )

        repo = current_domain.repository_for(Customer)
        if repo._dao.query.filter(email=customer.email).all().items:
            raise ConstraintViolation(f"Email {customer.email} is already registered")

        repo.add(customer)
        current_domain.repository_for(ShoppingCart).add(ShoppingCart.create(customer_id=str(customer.id)))

        logger.info("customer_registered", customer_id=str(customer.id))
        return str(customer.id)
