"""SQLite persistence for extracted business records."""
