"""Serializers for bulk export files and JSON-safe row snapshots."""

import csv
from datetime import datetime
from io import StringIO
from typing import Any

import orjson

from labadmin.db.base import utc_now


def to_jsonable(value: Any) -> Any:
    """
    Convert rows (or any nested structure) to plain JSON types.

    Datetimes and dates become ISO strings, UUIDs become strings, anything
    else orjson cannot encode falls back to ``str``.
    """
    return orjson.loads(orjson.dumps(value, default=str))


def _csv_cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return orjson.dumps(value).decode("utf-8")
    return value


def rows_to_csv(rows: list[dict[str, Any]], fieldnames: list[str]) -> bytes:
    """
    Render rows as CSV with a header line.

    Args:
        rows: JSON-safe row dicts
        fieldnames: Column order; also written when ``rows`` is empty

    Returns:
        UTF-8 encoded CSV
    """
    output = StringIO()
    writer = csv.DictWriter(output, fieldnames=fieldnames, extrasaction="ignore")
    writer.writeheader()
    for row in rows:
        writer.writerow({name: _csv_cell(row.get(name)) for name in fieldnames})
    return output.getvalue().encode("utf-8")


def rows_to_json(
    rows: list[dict[str, Any]],
    *,
    table: str,
    exported_by: str,
    filters: list[dict[str, Any]],
    exported_at: datetime | None = None,
) -> bytes:
    """Render rows inside the export envelope as indented JSON."""
    envelope = {
        "export_type": f"bulk_{table}",
        "exported_at": (exported_at or utc_now()).isoformat(),
        "exported_by": exported_by,
        "record_count": len(rows),
        "filters": filters,
        "data": rows,
    }
    return orjson.dumps(envelope, option=orjson.OPT_INDENT_2, default=str)


def build_export_filename(table: str, fmt: str, when: datetime | None = None) -> str:
    """``bulk-export-<table>-<YYYY-MM-DDTHH-MM-SS>.<ext>``"""
    stamp = (when or utc_now()).strftime("%Y-%m-%dT%H-%M-%S")
    return f"bulk-export-{table}-{stamp}.{fmt}"


def content_type_for(fmt: str) -> str:
    return "text/csv; charset=utf-8" if fmt == "csv" else "application/json"
