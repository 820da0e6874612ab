"""
Export Pipeline - CSV/JSON Output for Business Records

JSON keeps the record shape as-is (camelCase keys, emails as a list, hours as
a mapping). CSV flattens it: emails joined with "; ", hours rendered
"Monday: 9 AM to 5 PM | Tuesday: ..." in weekday order, plus a primaryEmail
column with the most business-like address.
"""

import csv
import json
from datetime import datetime as dt
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..schemas import WEEKDAYS, BusinessRecord
from .validation import prioritize_emails


def flatten_for_csv(record: BusinessRecord) -> Dict[str, Any]:
    """One CSV row (camelCase keys) for ``record``."""
    row = record.to_export_dict()
    emails = row.get("emails") or []
    row["primaryEmail"] = prioritize_emails(emails)
    row["emails"] = "; ".join(emails)
    hours = row.get("businessHours")
    if isinstance(hours, dict):
        row["businessHours"] = " | ".join(f"{day}: {hours[day]}" for day in WEEKDAYS if hours.get(day))
    return {k: ("" if v is None else v) for k, v in row.items()}


class RecordExporter:
    """Writes business records to CSV/JSON files in ``output_dir``."""

    def __init__(self, output_dir: Union[str, Path] = "output"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, filename: Optional[str], ext: str) -> Path:
        if filename is None:
            timestamp = dt.now().strftime("%Y%m%d_%H%M%S")
            filename = f"businesses_{timestamp}.{ext}"
        return self.output_dir / filename

    def to_csv(self, records: List[BusinessRecord], filename: Optional[str] = None) -> Path:
        """
        Export records to a flat CSV file.

        Args:
            records: Validated business records
            filename: Output filename (auto-generated if None)

        Returns:
            Path to created CSV file
        """
        csv_path = self._path(filename, "csv")
        rows = [flatten_for_csv(r) for r in records]
        fieldnames: List[str] = []
        for row in rows:
            for key in row:
                if key not in fieldnames:
                    fieldnames.append(key)

        with open(csv_path, "w", newline="", encoding="utf-8") as csvfile:
            if rows:
                writer = csv.DictWriter(csvfile, fieldnames=fieldnames)
                writer.writeheader()
                writer.writerows(rows)

        print(f"💾 CSV exported: {csv_path} ({len(rows)} businesses)")
        return csv_path

    def to_json(
        self,
        records: List[BusinessRecord],
        filename: Optional[str] = None,
        pretty: bool = True,
    ) -> Path:
        """Export records as a JSON array of camelCase objects."""
        json_path = self._path(filename, "json")
        data = [r.to_export_dict() for r in records]
        with open(json_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2 if pretty else None)
        print(f"💾 JSON exported: {json_path} ({len(data)} businesses)")
        return json_path
