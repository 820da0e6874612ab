"""
Unit tests for Export Pipeline

Tests CSV/JSON export of business records: camelCase JSON, flattened CSV
columns and timestamped default filenames.
"""

import csv
import json
import re
import tempfile
from unittest.mock import patch

from mapleads.pipeline.export import RecordExporter, flatten_for_csv
from mapleads.schemas import BusinessRecord, EmailSource


class TestRecordExporter:
    """Test suite for RecordExporter class."""

    def setup_method(self):
        """Set up test fixtures with temporary output directory."""
        self.temp_dir = tempfile.mkdtemp()
        self.exporter = RecordExporter(output_dir=self.temp_dir)

        self.full_record = BusinessRecord(
            business_name="Joe's Pizza",
            address="123 Main St, Brooklyn, NY 11201",
            city="Brooklyn",
            rating=4.6,
            review_count=1024,
            maps_url="https://www.google.com/maps/place/Joes",
            business_hours={"Tuesday": "11 AM to 10 PM", "Monday": "Closed"},
            emails=["joe@joespizza.test", "info@joespizza.test"],
            email_source=EmailSource.WEBSITE,
        )
        self.sparse_record = BusinessRecord(business_name="Quiet Place")

    def test_exporter_initialization(self):
        """Output directory is created."""
        assert self.exporter.output_dir.exists()
        assert self.exporter.output_dir.is_dir()

    def test_flatten_for_csv(self):
        row = flatten_for_csv(self.full_record)
        assert row["businessName"] == "Joe's Pizza"
        assert row["emails"] == "joe@joespizza.test; info@joespizza.test"
        assert row["primaryEmail"] == "info@joespizza.test"
        assert row["businessHours"] == "Monday: Closed | Tuesday: 11 AM to 10 PM"
        assert row["emailSource"] == "website"

    def test_flatten_nulls_become_empty_cells(self):
        row = flatten_for_csv(self.sparse_record)
        assert row["rating"] == ""
        assert row["businessHours"] == ""
        assert row["emails"] == ""
        assert row["primaryEmail"] == ""
        assert row["reviewCount"] == 0

    def test_json_export_uses_camel_case(self):
        with patch("builtins.print"):
            path = self.exporter.to_json([self.full_record, self.sparse_record], filename="out.json")

        data = json.loads(path.read_text(encoding="utf-8"))
        assert [d["businessName"] for d in data] == ["Joe's Pizza", "Quiet Place"]
        assert data[0]["emails"] == ["joe@joespizza.test", "info@joespizza.test"]
        assert data[0]["businessHours"] == {"Tuesday": "11 AM to 10 PM", "Monday": "Closed"}
        assert data[1]["emailSource"] == "not_found"
        assert data[1]["rating"] is None

    def test_csv_export(self):
        with patch("builtins.print"):
            path = self.exporter.to_csv([self.full_record, self.sparse_record], filename="out.csv")

        with open(path, newline="", encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert len(rows) == 2
        assert rows[0]["businessName"] == "Joe's Pizza"
        assert rows[0]["primaryEmail"] == "info@joespizza.test"
        assert rows[1]["rating"] == ""
        assert "mapsUrl" in rows[0]

    def test_default_filenames_are_timestamped(self):
        with patch("builtins.print"):
            json_path = self.exporter.to_json([self.sparse_record])
            csv_path = self.exporter.to_csv([self.sparse_record])
        assert re.fullmatch(r"businesses_\d{8}_\d{6}\.json", json_path.name)
        assert re.fullmatch(r"businesses_\d{8}_\d{6}\.csv", csv_path.name)

    def test_empty_result_still_writes_files(self):
        with patch("builtins.print"):
            json_path = self.exporter.to_json([], filename="empty.json")
            csv_path = self.exporter.to_csv([], filename="empty.csv")
        assert json.loads(json_path.read_text(encoding="utf-8")) == []
        assert csv_path.exists()
