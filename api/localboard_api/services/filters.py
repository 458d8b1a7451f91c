"""Discovery filters for the public listing views.

Translates optional query options into a parameterized SQL predicate over the
public listing view (alias ``l``) joined with ``neighborhoods n`` and
``cities c``. Nothing here touches the database.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from localboard_api.schemas.listings import CATEGORIES_BY_KIND

DEFAULT_LIMIT = 100
MAX_LIMIT = 1000
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class FilterValidationError(ValueError):
    """Raised when discovery options are malformed."""


@dataclass(slots=True)
class ListingFilterOptions:
    city: str | None = None
    macro_neighborhood: str | None = None
    neighborhoods: list[str] | None = None
    categories: list[str] | None = None
    date_from: str | None = None
    date_to: str | None = None
    limit: int = DEFAULT_LIMIT
    offset: int = 0


@dataclass(slots=True)
class FilterClause:
    predicate: str
    params: list[Any] = field(default_factory=list)

    @property
    def where_sql(self) -> str:
        return f"where {self.predicate}" if self.predicate else ""


def parse_csv_param(raw: str | None) -> list[str] | None:
    if raw is None:
        return None
    items = [chunk.strip() for chunk in raw.split(",") if chunk.strip()]
    return items or None


def validate_categories(kind: str, categories: list[str] | None) -> list[str] | None:
    if not categories:
        return None
    allowed = CATEGORIES_BY_KIND[kind]
    invalid = [category for category in categories if category not in allowed]
    if invalid:
        raise FilterValidationError(
            f"Invalid categories: {', '.join(invalid)}. Must be one of: {', '.join(allowed)}"
        )
    return list(dict.fromkeys(categories))


def parse_filter_date(value: str | None, *, name: str) -> date | None:
    if value is None:
        return None
    if not DATE_RE.match(value):
        raise FilterValidationError(f"{name} must be in YYYY-MM-DD format")
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise FilterValidationError(f"{name} is not a valid calendar date") from exc


def validate_pagination(limit: int, offset: int) -> None:
    if limit < 1 or limit > MAX_LIMIT:
        raise FilterValidationError(f"Limit must be a number between 1 and {MAX_LIMIT}")
    if offset < 0:
        raise FilterValidationError("Offset must be a non-negative number")


def build_listing_filters(
    kind: str,
    options: ListingFilterOptions,
    *,
    first_param: int = 1,
) -> FilterClause:
    """Build the ``where`` predicate for one listing kind.

    Absent options add no term. Name comparisons are case-insensitive,
    ``neighborhoods`` and ``categories`` match any listed value, and every
    present dimension is AND-ed. Date bounds are inclusive and only apply to
    events.
    """
    validate_pagination(options.limit, options.offset)
    categories = validate_categories(kind, options.categories)
    date_from = parse_filter_date(options.date_from, name="date_from")
    date_to = parse_filter_date(options.date_to, name="date_to")
    if kind != "events" and (date_from is not None or date_to is not None):
        raise FilterValidationError("date_from and date_to only apply to events")

    conditions: list[str] = []
    params: list[Any] = []

    def bind(value: Any) -> str:
        params.append(value)
        return f"${first_param + len(params) - 1}"

    city = _coerce_text(options.city)
    if city:
        conditions.append(f"lower(c.city) = lower({bind(city)})")

    macro = _coerce_text(options.macro_neighborhood)
    if macro:
        conditions.append(f"lower(n.macro_neighborhood) = lower({bind(macro)})")

    neighborhoods = [name.lower() for name in options.neighborhoods or [] if name.strip()]
    if neighborhoods:
        conditions.append(f"lower(n.neighborhood) = any({bind(neighborhoods)}::text[])")

    if categories:
        conditions.append(f"l.categories::text[] && {bind(categories)}::text[]")

    if date_from is not None:
        conditions.append(f"l.date >= {bind(date_from)}::date")
    if date_to is not None:
        conditions.append(f"l.date <= {bind(date_to)}::date")

    return FilterClause(predicate=" and ".join(conditions), params=params)


def _coerce_text(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None
