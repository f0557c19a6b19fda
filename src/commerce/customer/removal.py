"""Customer deletion — command and handler.

Deletion is blocked while the customer has orders. Otherwise the customer's
cart and reviews go with it; addresses are part of the aggregate.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from commerce.cart.cart import ShoppingCart
from commerce.customer.customer import Customer
from commerce.domain import commerce, logger
from commerce.errors import ConstraintViolation
from commerce.shared.queries import all_records


@commerce.command(part_of="Customer")
class DeleteCustomer:
    customer_id = Identifier(required=True)


@commerce.command_handler(part_of=Customer)
class DeleteCustomerHandler:
    @handle(DeleteCustomer)
    def delete_customer(self, command):
        from commerce.order.order import Order
        from commerce.review.review import Review

        repo = current_domain.repository_for(Customer)
        customer = repo.get(command.customer_id)
        customer_id = str(customer.id)

        if current_domain.repository_for(Order)._dao.query.filter(customer_id=customer_id).all().items:
            raise ConstraintViolation(f"Customer {customer_id} has orders and cannot be deleted")

        cart_repo = current_domain.repository_for(ShoppingCart)
        for cart in list(all_records(cart_repo, customer_id=customer_id)):
            cart_repo.remove(cart)

        review_repo = current_domain.repository_for(Review)
        for review in list(all_records(review_repo, customer_id=customer_id)):
            review_repo.remove(review)

        repo.remove(customer)
        logger.info("customer_deleted", customer_id=customer_id)
