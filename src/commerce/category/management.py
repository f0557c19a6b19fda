"""Category management — commands and handler.

Deleting a category is refused while products still belong to it; child
categories are detached (their parent link becomes empty) rather than
deleted.
"""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from commerce.category.category import Category
from commerce.domain import commerce, logger
from commerce.errors import ConstraintViolation
from commerce.shared.queries import all_records


@commerce.command(part_of="Category")
class CreateCategory:
    name = String(required=True, max_length=100)
    description = Text()
    parent_category_id = Identifier()


@commerce.command(part_of="Category")
class MoveCategory:
    category_id = Identifier(required=True)
    new_parent_id = Identifier()


@commerce.command(part_of="Category")
class DeleteCategory:
    category_id = Identifier(required=True)


def ancestors_of(repo, category_id):
    """Yield ids from ``category_id`` up to its root."""
    seen = set()
    current = category_id
    while current is not None and str(current) not in seen:
        seen.add(str(current))
        yield str(current)
        current = repo.get(current).parent_category_id


@commerce.command_handler(part_of=Category)
class ManageCategoryHandler:
    @handle(CreateCategory)
    def create_category(self, command):
        repo = current_domain.repository_for(Category)
        if command.parent_category_id:
            repo.get(command.parent_category_id)

        category = Category.create(
            name=command.name,
            description=command.description,
            parent_category_id=command.parent_category_id,
        )
        repo.add(category)
        return str(category.id)

    @handle(MoveCategory)
    def move_category(self, command):
        repo = current_domain.repository_for(Category)
        category = repo.get(command.category_id)

        if command.new_parent_id:
            if str(category.id) in ancestors_of(repo, command.new_parent_id):
                raise ConstraintViolation(
                    f"Moving category {category.id} under {command.new_parent_id} would create a cycle"
                )

        category.move_to(command.new_parent_id or None)
        repo.add(category)

    @handle(DeleteCategory)
    def delete_category(self, command):
        from commerce.product.product import Product

        repo = current_domain.repository_for(Category)
        category = repo.get(command.category_id)
        category_id = str(category.id)

        if current_domain.repository_for(Product)._dao.query.filter(category_id=category_id).all().items:
            raise ConstraintViolation(f"Category {category_id} still has products")

        for child in list(all_records(repo, parent_category_id=category_id)):
            child.move_to(None)
            repo.add(child)

        repo.remove(category)
        logger.info("category_deleted", category_id=category_id)
