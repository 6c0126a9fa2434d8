"""
Translate bulk-operation filters into SQLAlchemy statements.

The same condition list serves the read path (count and preview) and the
WHERE clause of a mutation. Every condition is validated and its value
coerced before any statement is built, so a bad filter never reaches the
database.
"""

from collections.abc import Sequence
from datetime import date, datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import ColumnElement, Select, and_, func, select

from labadmin.core.exceptions import (
    InvalidFilterValueError,
    InvalidOperatorForFieldError,
    UnknownFieldError,
)
from labadmin.schemas.bulk_operation import FilterCondition, FilterOperator
from labadmin.services.bulk_tables import FieldKind, TableSpec

TRUE_WORDS = frozenset({"true", "t", "yes", "y", "1"})
FALSE_WORDS = frozenset({"false", "f", "no", "n", "0"})


def coerce_value(field_name: str, kind: FieldKind, raw: str) -> Any:
    """
    Convert a filter value string into the column's native type.

    Args:
        field_name: Column name (for error messages)
        kind: Kind of the column
        raw: Value as received from the client

    Returns:
        Value suitable for binding against the column

    Raises:
        InvalidFilterValueError: If the value cannot be converted
    """
    value = raw.strip()

    if kind is FieldKind.TEXT:
        return raw

    if kind is FieldKind.IDENTIFIER:
        try:
            return str(UUID(value))
        except ValueError:
            raise InvalidFilterValueError(field_name, raw, "a UUID") from None

    if kind is FieldKind.BOOLEAN:
        lowered = value.lower()
        if lowered in TRUE_WORDS:
            return True
        if lowered in FALSE_WORDS:
            return False
        raise InvalidFilterValueError(field_name, raw, "true or false")

    if kind is FieldKind.NUMBER:
        try:
            return int(value)
        except ValueError:
            pass
        try:
            return float(value)
        except ValueError:
            raise InvalidFilterValueError(field_name, raw, "a number") from None

    if kind is FieldKind.DATE:
        try:
            return date.fromisoformat(value)
        except ValueError:
            raise InvalidFilterValueError(field_name, raw, "a date (YYYY-MM-DD)") from None

    if kind is FieldKind.DATETIME:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise InvalidFilterValueError(field_name, raw, "an ISO 8601 timestamp") from None
        # Stored timestamps are UTC
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    raise InvalidFilterValueError(field_name, raw, kind.value)


def split_list_value(value: str | list[str]) -> list[str]:
    """Split an ``in_list`` value into trimmed, non-empty items."""
    items = value if isinstance(value, list) else value.split(",")
    return [item.strip() for item in items if item.strip()]


def build_condition(spec: TableSpec, condition: FilterCondition) -> ColumnElement[bool]:
    """
    Build the SQL predicate for one filter condition.

    Raises:
        UnknownFieldError: If the field is not filterable on this table
        InvalidOperatorForFieldError: If the operator does not apply to the field's kind
        InvalidFilterValueError: If the value cannot be coerced
    """
    kind = spec.filter_fields.get(condition.field)
    if kind is None:
        raise UnknownFieldError(spec.name.value, condition.field)

    column = spec.column(condition.field)
    operator = condition.operator

    if operator is FilterOperator.IN_LIST:
        items = [
            coerce_value(condition.field, kind, item)
            for item in split_list_value(condition.value)
        ]
        return column.in_(items)

    # list values are rejected by the schema for every other operator
    raw = condition.value if isinstance(condition.value, str) else ",".join(condition.value)

    if operator is FilterOperator.CONTAINS:
        if not kind.is_text:
            raise InvalidOperatorForFieldError(condition.field, operator.value, kind.value)
        return column.icontains(raw, autoescape=True)

    if operator in (FilterOperator.GREATER_THAN, FilterOperator.LESS_THAN):
        if not kind.is_orderable:
            raise InvalidOperatorForFieldError(condition.field, operator.value, kind.value)
        value = coerce_value(condition.field, kind, raw)
        return column > value if operator is FilterOperator.GREATER_THAN else column < value

    value = coerce_value(condition.field, kind, raw)
    if operator is FilterOperator.EQUALS:
        return column == value
    return column != value


def build_conditions(
    spec: TableSpec,
    filters: Sequence[FilterCondition],
) -> list[ColumnElement[bool]]:
    """
    Validate and translate a filter list.

    An empty list yields no conditions, i.e. every row matches.
    """
    return [build_condition(spec, condition) for condition in filters]


def _where(stmt: Select, conditions: list[ColumnElement[bool]]) -> Select:
    if conditions:
        stmt = stmt.where(and_(*conditions))
    return stmt


def select_matching(
    spec: TableSpec,
    filters: Sequence[FilterCondition],
    limit: int | None = None,
) -> Select:
    """SELECT of matching rows, ordered by primary key."""
    stmt = _where(select(spec.model), build_conditions(spec, filters))
    stmt = stmt.order_by(spec.pk_column)
    if limit is not None:
        stmt = stmt.limit(limit)
    return stmt


def count_matching(spec: TableSpec, filters: Sequence[FilterCondition]) -> Select:
    """SELECT COUNT(*) of matching rows."""
    return _where(select(func.count()).select_from(spec.model), build_conditions(spec, filters))
