"""Unit tests for export serializers."""

import csv
import datetime
import io
import uuid

import orjson

from labadmin.services.bulk_export import (
    build_export_filename,
    content_type_for,
    rows_to_csv,
    rows_to_json,
    to_jsonable,
)


class TestToJsonable:
    def test_converts_dates_and_uuids(self):
        ident = uuid.uuid4()
        row = {
            "id": ident,
            "date": datetime.date(2025, 3, 1),
            "created_at": datetime.datetime(2025, 3, 1, 12, 0, tzinfo=datetime.timezone.utc),
            "is_active": True,
            "agency": None,
        }

        result = to_jsonable([row])

        assert result == [
            {
                "id": str(ident),
                "date": "2025-03-01",
                "created_at": "2025-03-01T12:00:00+00:00",
                "is_active": True,
                "agency": None,
            }
        ]


class TestRowsToCsv:
    def test_header_and_cell_formatting(self):
        rows = [
            {"id": "1", "status": "active", "is_active": True, "agency": None},
            {"id": "2", "status": "withdrawn", "is_active": False, "agency": "Metro, Fire"},
        ]

        content = rows_to_csv(rows, ["id", "status", "is_active", "agency"]).decode("utf-8")
        parsed = list(csv.reader(io.StringIO(content)))

        assert parsed[0] == ["id", "status", "is_active", "agency"]
        assert parsed[1] == ["1", "active", "true", ""]
        assert parsed[2] == ["2", "withdrawn", "false", "Metro, Fire"]

    def test_empty_export_still_has_header(self):
        content = rows_to_csv([], ["id", "status"]).decode("utf-8")
        assert content.strip() == "id,status"


class TestRowsToJson:
    def test_envelope(self):
        exported_at = datetime.datetime(2025, 5, 1, 9, 30, tzinfo=datetime.timezone.utc)
        filters = [{"field": "status", "operator": "equals", "value": "active"}]

        content = rows_to_json(
            [{"id": "1"}, {"id": "2"}],
            table="students",
            exported_by="admin@example.com",
            filters=filters,
            exported_at=exported_at,
        )
        data = orjson.loads(content)

        assert data["export_type"] == "bulk_students"
        assert data["exported_at"] == "2025-05-01T09:30:00+00:00"
        assert data["exported_by"] == "admin@example.com"
        assert data["record_count"] == 2
        assert data["filters"] == filters
        assert data["data"] == [{"id": "1"}, {"id": "2"}]
        # indented for readability
        assert b"\n  " in content


def test_export_filename():
    when = datetime.datetime(2025, 5, 1, 9, 30, 5, tzinfo=datetime.timezone.utc)
    assert build_export_filename("lab_days", "csv", when) == "bulk-export-lab_days-2025-05-01T09-30-05.csv"
    assert build_export_filename("students", "json", when).endswith(".json")


def test_content_types():
    assert content_type_for("csv").startswith("text/csv")
    assert content_type_for("json") == "application/json"
