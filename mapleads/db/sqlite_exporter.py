from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import List

from mapleads.schemas import BusinessRecord

DDL_STATEMENTS = [
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    """
    CREATE TABLE IF NOT EXISTS businesses (
      id INTEGER PRIMARY KEY AUTOINCREMENT,
      maps_url TEXT NOT NULL UNIQUE,
      business_name TEXT NOT NULL,
      address TEXT,
      city TEXT,
      state TEXT,
      zip TEXT,
      country TEXT,
      phone TEXT,
      website TEXT,
      rating REAL CHECK (rating IS NULL OR (rating >= 0 AND rating <= 5)),
      review_count INTEGER NOT NULL DEFAULT 0,
      category TEXT,
      price_level TEXT,
      price_range TEXT,
      latitude REAL,
      longitude REAL,
      business_hours TEXT,
      emails TEXT NOT NULL,
      email_source TEXT NOT NULL CHECK (email_source IN ('website','google_profile','not_found')),
      captured_at TEXT NOT NULL,
      record TEXT NOT NULL
    )
    """.strip(),
    """
    CREATE INDEX IF NOT EXISTS idx_businesses_name ON businesses (lower(business_name))
    """.strip(),
    """
    CREATE INDEX IF NOT EXISTS idx_businesses_city_category ON businesses (city, category)
    """.strip(),
]

UPSERT_SQL = (
    """
    INSERT INTO businesses (
      maps_url, business_name, address, city, state, zip, country, phone, website,
      rating, review_count, category, price_level, price_range, latitude, longitude,
      business_hours, emails, email_source, captured_at, record
    ) VALUES (
      :maps_url, :business_name, :address, :city, :state, :zip, :country, :phone, :website,
      :rating, :review_count, :category, :price_level, :price_range, :latitude, :longitude,
      :business_hours, :emails, :email_source, :captured_at, :record
    )
    ON CONFLICT(maps_url)
    DO UPDATE SET
      business_name = excluded.business_name,
      address = excluded.address,
      city = excluded.city,
      state = excluded.state,
      zip = excluded.zip,
      country = excluded.country,
      phone = excluded.phone,
      website = excluded.website,
      rating = excluded.rating,
      review_count = excluded.review_count,
      category = excluded.category,
      price_level = excluded.price_level,
      price_range = excluded.price_range,
      latitude = excluded.latitude,
      longitude = excluded.longitude,
      business_hours = excluded.business_hours,
      emails = excluded.emails,
      email_source = excluded.email_source,
      captured_at = excluded.captured_at,
      record = excluded.record
    """
).strip()


def ensure_schema(conn: sqlite3.Connection) -> None:
    for stmt in DDL_STATEMENTS:
        conn.execute(stmt)


def export_records_to_sqlite(db_path: str, records: List[BusinessRecord]) -> int:
    """Upsert records into a SQLite database keyed by maps URL.

    Args:
        db_path: Path to the SQLite database file (created if absent)
        records: Validated business records; records without a maps URL are skipped

    Returns:
        Number of rows processed (attempted upserts)
    """
    rows = []
    captured_at = datetime.now(timezone.utc).isoformat()
    for r in records:
        if not r.maps_url:
            continue
        rows.append({
            "maps_url": r.maps_url,
            "business_name": r.business_name,
            "address": r.address,
            "city": r.city,
            "state": r.state,
            "zip": r.zip,
            "country": r.country,
            "phone": r.phone,
            "website": r.website,
            "rating": r.rating,
            "review_count": r.review_count,
            "category": r.category,
            "price_level": r.price_level,
            "price_range": r.price_range,
            "latitude": r.latitude,
            "longitude": r.longitude,
            "business_hours": json.dumps(r.business_hours, ensure_ascii=False) if r.business_hours else None,
            "emails": json.dumps(r.emails, ensure_ascii=False),
            "email_source": r.email_source.value,
            "captured_at": captured_at,
            "record": json.dumps(r.to_export_dict(), ensure_ascii=False),
        })
    if not rows:
        return 0

    conn = sqlite3.connect(db_path)
    try:
        ensure_schema(conn)
        with conn:  # transactional batch
            conn.executemany(UPSERT_SQL, rows)
        return len(rows)
    finally:
        conn.close()
