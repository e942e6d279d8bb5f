"""
Orgdesk
Blueprint helpers.
"""

from flask import request


def paginate_query(query, default_limit=100, max_limit=500):
    """Apply limit/offset pagination to a SQLAlchemy query.

    Query params:
        limit  - max items (default 100, capped at max_limit)
        offset - starting position (default 0)

    Returns:
        (items_list, total_count)
    """
    total = query.count()
    try:
        limit = min(int(request.args.get("limit", default_limit)), max_limit)
    except (ValueError, TypeError):
        limit = default_limit
    try:
        offset = max(int(request.args.get("offset", 0)), 0)
    except (ValueError, TypeError):
        offset = 0
    return query.limit(limit).offset(offset).all(), total
