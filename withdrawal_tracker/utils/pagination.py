DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def paginate_query(query, page=None, limit=None):
    """Slice ``query`` and describe the page. Bad values fall back to defaults."""
    try:
        page = max(int(page or 1), 1)
        limit = min(max(int(limit or DEFAULT_LIMIT), 1), MAX_LIMIT)
    except (TypeError, ValueError):
        page, limit = 1, DEFAULT_LIMIT

    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    total_pages = (total + limit - 1) // limit
    return items, {
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }
