#!/usr/bin/env python3
"""
Export JSON Schema files from Pydantic models for the Maps Lead Extractor.
- Draft: 2020-12
- Sources: mapleads/schemas.py (BusinessRecord, RawRecord), mapleads/config.py (ScrapeConfig)
- Outputs: schemas/*.schema.json
"""
import json
import sys
from pathlib import Path
from typing import Any, Dict, Optional

ROOT = Path(__file__).resolve().parents[1]
SCHEMAS_DIR = ROOT / "schemas"

sys.path.insert(0, str(ROOT))

from mapleads.config import ScrapeConfig  # noqa: E402
from mapleads.schemas import BusinessRecord, RawRecord  # noqa: E402

SCHEMA_VERSION = "https://json-schema.org/draft/2020-12/schema"


def add_common_headers(schema: Dict[str, Any], title: str, description: str, example: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    schema.setdefault("$schema", SCHEMA_VERSION)
    schema.setdefault("title", title)
    schema.setdefault("description", description)
    if example is not None:
        schema.setdefault("examples", [example])
    return schema


def business_example() -> dict:
    return {
        "businessName": "Acme Coffee",
        "address": "123 Main St, Austin, TX 78701",
        "street": "123 Main St",
        "city": "Austin",
        "state": "TX",
        "zip": "78701",
        "country": "United States",
        "phone": "+15125550100",
        "website": "https://acmecoffee.example/",
        "rating": 4.6,
        "reviewCount": 1234,
        "category": "Coffee shop",
        "priceLevel": "$$",
        "priceRange": "$10–20",
        "mapsUrl": "https://www.google.com/maps/place/Acme+Coffee/@30.2672,-97.7431,17z",
        "latitude": 30.2672,
        "longitude": -97.7431,
        "businessHours": {"Monday": "7 AM to 6 PM", "Tuesday": "7 AM to 6 PM"},
        "emails": ["info@acmecoffee.example"],
        "emailSource": "website",
    }


def raw_example() -> dict:
    return {
        "businessName": "Acme Coffee",
        "address": "123 Main St, Austin, TX 78701",
        "rating": "4.6",
        "reviewCount": "(1,234)",
        "mapsUrl": "https://www.google.com/maps/place/Acme+Coffee/@30.2672,-97.7431,17z",
    }


def config_example() -> dict:
    return {
        "keyword": "coffee shop",
        "location": "Austin, TX",
        "max_results": 50,
        "criteria": {"min_rating": 4.0, "min_reviews": 20},
        "find_emails": True,
    }


def save_schema(model, path: Path, title: str, description: str, example: dict, by_alias: bool = True):
    schema = model.model_json_schema(by_alias=by_alias)  # pydantic v2
    schema = add_common_headers(schema, title, description, example)
    path.write_text(json.dumps(schema, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    print(f"Wrote {path.relative_to(ROOT)}")


def main():
    SCHEMAS_DIR.mkdir(parents=True, exist_ok=True)
    save_schema(
        BusinessRecord,
        SCHEMAS_DIR / "business_record.schema.json",
        "BusinessRecord",
        "Validated business listing as written to JSON/CSV/SQLite.",
        business_example(),
    )
    save_schema(
        RawRecord,
        SCHEMAS_DIR / "raw_record.schema.json",
        "RawRecord",
        "Untrusted fields as read from one listing detail panel.",
        raw_example(),
    )
    save_schema(
        ScrapeConfig,
        SCHEMAS_DIR / "scrape_config.schema.json",
        "ScrapeConfig",
        "YAML run configuration accepted by mle.run --config.",
        config_example(),
        by_alias=False,
    )


if __name__ == "__main__":
    main()
