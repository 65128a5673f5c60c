"""Physics calculations and constants."""
