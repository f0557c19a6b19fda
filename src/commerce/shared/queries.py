"""Query helpers over repository DAOs."""

PAGE_SIZE = 100


def all_records(repo, **filters):
    """Iterate every record matching ``filters``, fetching page by page.

    Plain ``query.filter(...).all()`` stops at the DAO's default page size;
    scans that must see every row (cascades, projections) go through here.
    """
    query = repo._dao.query
    if filters:
        query = query.filter(**filters)

    offset = 0
    while True:
        page = query.offset(offset).limit(PAGE_SIZE).all()
        yield from page.items
        if not page.has_next:
            break
        offset += PAGE_SIZE
