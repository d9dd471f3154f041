"""Order ingestion and fiscal-year export service."""
