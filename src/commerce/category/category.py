"""Category aggregate root — a node in the catalogue's category tree."""

from datetime import UTC, datetime

from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String, Text

from commerce.category.events import CategoryCreated, CategoryMoved
from commerce.domain import commerce


@commerce.aggregate
class Category:
    """A grouping of products. ``parent_category_id`` is empty for root categories.

    The tree is stored as parent links only; cycle checks need the whole
    chain of ancestors and therefore live in the move handler.
    """

    name = String(required=True, max_length=100)
    description = Text()
    parent_category_id = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def create(cls, name, description=None, parent_category_id=None):
        now = datetime.now(UTC)
        category = cls(
            name=name,
            description=description,
            parent_category_id=parent_category_id,
            created_at=now,
            updated_at=now,
        )
        category.raise_(
            CategoryCreated(
                category_id=str(category.id),
                name=name,
                parent_category_id=parent_category_id,
            )
        )
        return category

    def move_to(self, new_parent_id):
        if new_parent_id is not None and str(new_parent_id) == str(self.id):
            raise ValidationError({"parent_category_id": ["A category cannot be its own parent"]})

        previous_parent_id = self.parent_category_id
        self.parent_category_id = new_parent_id
        self.updated_at = datetime.now(UTC)

        self.raise_(
            CategoryMoved(
                category_id=str(self.id),
                previous_parent_id=previous_parent_id,
                new_parent_id=new_parent_id,
            )
        )
