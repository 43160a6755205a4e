"""
Pagination, sorting and filtering helpers shared by the data-access services.

Client-supplied sort fields are never interpolated into SQL: they are looked up
in an explicit allow-list of ``name -> column`` and anything else falls back to
the entity's default ordering. Filter values always travel as bound parameters
because filters are plain SQLAlchemy expressions built in code.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from sqlalchemy.orm import Query

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def positive_int(value: Any, default: int) -> int:
    """Parse ``value`` as a positive integer, returning ``default`` otherwise."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_params(cls, page: Any = None, limit: Any = None, default_limit: int = DEFAULT_LIMIT) -> "PageRequest":
        """Clamp raw query values to a usable page request."""
        return cls(
            page=positive_int(page, DEFAULT_PAGE),
            limit=min(positive_int(limit, default_limit), MAX_LIMIT),
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def cache_token(self) -> str:
        return f"{self.page}:{self.limit}"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["SortOrder"]:
        if not value:
            return None
        try:
            return cls(value.lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class SortSpec:
    field: str
    order: SortOrder

    def cache_token(self) -> str:
        return f"{self.field}:{self.order.value}"


@dataclass(frozen=True)
class SortPolicy:
    """
    Allow-listed sort columns for one listing.

    ``tie_breaker`` (normally the primary key) is appended to every ordering so
    that rows with equal sort values keep a stable position across pages.
    """
    columns: Mapping[str, Any]
    default_field: str
    tie_breaker: Any
    default_order: SortOrder = SortOrder.DESC

    def resolve(self, requested_field: Optional[str], requested_order: Optional[str]) -> SortSpec:
        # Unknown fields and orders silently fall back to the defaults
        if requested_field not in self.columns:
            requested_field = self.default_field
        order = SortOrder.parse(requested_order) or self.default_order
        return SortSpec(requested_field, order)

    def order_by(self, spec: SortSpec) -> List[Any]:
        column = self.columns[spec.field]
        clause = column.asc() if spec.order is SortOrder.ASC else column.desc()
        tie = self.tie_breaker.asc() if spec.order is SortOrder.ASC else self.tie_breaker.desc()
        return [clause, tie]


@dataclass
class Page:
    items: List[Any] = field(default_factory=list)
    total: int = 0
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def page_count(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "items": self.items,
            "total": self.total,
            "page": self.page,
            "limit": self.limit,
            "page_count": self.page_count,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Page":
        return cls(items=list(data["items"]), total=data["total"], page=data["page"], limit=data["limit"])


def paginate(
    query: Query,
    page_request: PageRequest,
    order_by: List[Any],
    serialize: Callable[[Any], Any],
) -> Page:
    """
    Count and slice ``query``.

    Args:
        query: Filtered query without ordering
        page_request: Clamped page/limit
        order_by: Clauses from SortPolicy.order_by
        serialize: Converts one row into a JSON-compatible item

    Returns:
        Page: serialized items plus totals
    """
    total = query.order_by(None).count()
    rows = (
        query.order_by(*order_by)
        .offset(page_request.offset)
        .limit(page_request.limit)
        .all()
    )
    return Page(
        items=[serialize(row) for row in rows],
        total=total,
        page=page_request.page,
        limit=page_request.limit,
    )
