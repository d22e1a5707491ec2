"""
Uniform response envelope

Every endpoint answers {success, message, data} and list endpoints add
{pagination: {page, limit, total, pages}}.
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from fastapi.encoders import jsonable_encoder

from app.core.config import settings


@dataclass
class Pagination:
    """Page/limit pair clamped to the configured bounds"""
    page: int
    limit: int

    @classmethod
    def from_params(
        cls,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        max_limit: Optional[int] = None,
    ) -> "Pagination":
        max_limit = max_limit or settings.MAX_PAGE_SIZE
        page = max(int(page or 1), 1)
        limit = int(limit or settings.DEFAULT_PAGE_SIZE)
        limit = min(max(limit, 1), max_limit)
        return cls(page=page, limit=limit)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def meta(self, total: int) -> Dict[str, int]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": total,
            "pages": math.ceil(total / self.limit) if self.limit else 0,
        }


def _serialize(value: Any) -> Any:
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    return value


def success_response(data: Any = None, message: str = "Success") -> Dict[str, Any]:
    """Wrap a payload in the success envelope"""
    return {
        "success": True,
        "message": message,
        "data": jsonable_encoder(_serialize(data)),
    }


def paginated_response(
    items: Iterable[Any],
    pagination: Pagination,
    total: int,
    message: str = "Success",
    **extra: Any,
) -> Dict[str, Any]:
    """Wrap a page of items, adding pagination metadata and any extra keys (summaries)"""
    body = success_response(list(items), message)
    body["pagination"] = pagination.meta(total)
    for key, value in extra.items():
        body[key] = jsonable_encoder(_serialize(value))
    return body
