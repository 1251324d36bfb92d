"""Health and API discovery endpoints."""
