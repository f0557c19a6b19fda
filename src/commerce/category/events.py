"""Domain events for the Category aggregate."""

from protean.fields import Identifier, String

from commerce.domain import commerce


@commerce.event(part_of="Category")
class CategoryCreated:
    __version__ = 1

    category_id = Identifier(required=True)
    name = String(required=True)
    parent_category_id = Identifier()


@commerce.event(part_of="Category")
class CategoryMoved:
    __version__ = 1

    category_id = Identifier(required=True)
    previous_parent_id = Identifier()
    new_parent_id = Identifier()
