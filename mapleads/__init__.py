"""
Maps Lead Extractor - Core Package

Search-results scraping for map listings: field extraction, validation,
optional website email discovery and CSV/JSON/SQLite export.
"""
