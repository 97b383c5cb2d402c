"""Ordering of list queries from an ``order_by=field:direction`` parameter."""

from __future__ import annotations

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query

from ledger.core.database import Base

DIRECTIONS = ("asc", "desc")


def parse_order_by(order_by: str | None) -> tuple[str | None, str | None]:
    """Split ``"due_date:desc"`` into its field and direction.

    A missing direction means ``asc``; an unknown one is returned as ``None``.
    """
    if not order_by:
        return None, None
    field, _, direction = order_by.partition(":")
    direction = direction or "asc"
    return field or None, direction if direction in DIRECTIONS else None


def apply_order_by(
    query: Query,  # type: ignore[type-arg]
    model: type[Base],
    order_by: str | None,
    allowed_fields: frozenset[str] | None = None,
    default_field: str = "created_at",
    default_direction: str = "desc",
) -> Query:  # type: ignore[type-arg]
    """Order ``query`` by the requested column of ``model``.

    Args:
        query: The query to sort.
        model: Model the column is looked up on.
        order_by: ``"field:direction"``, e.g. ``"due_date:asc"``. ``None`` uses
            the defaults.
        allowed_fields: Columns callers may sort by. Unknown or disallowed
            fields fall back to ``default_field`` and ``default_direction``.
        default_field: Column used when no valid field was requested.
        default_direction: ``"asc"`` or ``"desc"``.

    Rows with equal sort values are ordered by ``id`` so paging is stable.
    """
    field, direction = parse_order_by(order_by)
    usable = (
        field is not None
        and (allowed_fields is None or field in allowed_fields)
        and hasattr(model, field)
    )
    if not usable:
        field, direction = default_field, default_direction

    order_func = asc if (direction or default_direction) == "asc" else desc
    ordered = query.order_by(order_func(getattr(model, field)))
    if field != "id" and hasattr(model, "id"):
        ordered = ordered.order_by(model.id)  # type: ignore[attr-defined]
    return ordered
