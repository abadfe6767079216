from __future__ import annotations

from typing import Tuple

from flask import request, abort

MAX_LIMIT = 100


def parse_pagination() -> Tuple[int, int]:
    try:
        page = int(request.args.get("page", "1"))
        limit = int(request.args.get("limit", "20"))
        page = max(page, 1)
        limit = max(1, min(limit, MAX_LIMIT))
        return page, limit
    except ValueError:
        abort(400, description="page and limit must be integers")


def paginate(query, order_by):
    """Apply offset/limit from the query string; returns (rows, meta)."""
    page, limit = parse_pagination()
    total = query.count()
    rows = query.order_by(*order_by).offset((page - 1) * limit).limit(limit).all()
    return rows, {"page": page, "limit": limit, "total": total}


def form_or_json() -> dict:
    """Request payload as a plain dict, whether multipart/form or JSON."""
    if request.mimetype in ("multipart/form-data", "application/x-www-form-urlencoded"):
        return request.form.to_dict()
    payload = request.get_json(silent=True)
    return dict(payload) if isinstance(payload, dict) else {}
