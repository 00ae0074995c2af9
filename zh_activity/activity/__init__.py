"""Activity aggregation engine."""
