"""Feature modules for the Document Store API."""
