"""HTTP wiring: dependencies and the aggregated router."""
