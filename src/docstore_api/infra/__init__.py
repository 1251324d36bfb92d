"""Infrastructure adapters (storage)."""
