"""Page/limit helpers shared by the list endpoints."""


def page_bounds(page: int, limit: int) -> tuple[int, int]:
    """(offset, end) for a 1-based page."""
    start = (page - 1) * limit
    return start, start + limit


def pagination_links(page: int, limit: int, total: int) -> dict:
    """next/prev page descriptors, present only when that page exists."""
    start, end = page_bounds(page, limit)
    pagination = {}
    if end < total:
        pagination["next"] = {"page": page + 1, "limit": limit}
    if start > 0:
        pagination["prev"] = {"page": page - 1, "limit": limit}
    return pagination
