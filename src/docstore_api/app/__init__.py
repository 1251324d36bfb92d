"""Application wiring (lifespan)."""
