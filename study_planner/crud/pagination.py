import math
from typing import Tuple, List, Any

from sqlalchemy.orm import Query

from study_planner.config import settings


def paginate(query: Query, page: int = 1, limit: int = None) -> Tuple[List[Any], dict]:
    """Apply LIMIT/OFFSET and return (items, pagination metadata)"""
    limit = limit or settings.default_page_size
    limit = max(1, min(limit, settings.max_page_size))
    page = max(1, page)

    total = query.order_by(None).count()
    items = query.limit(limit).offset((page - 1) * limit).all()

    return items, {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if total else 0,
    }
