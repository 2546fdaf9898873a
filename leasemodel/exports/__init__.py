"""Plain-data views of engine output (JSON-ready dicts and per-year rows)."""
