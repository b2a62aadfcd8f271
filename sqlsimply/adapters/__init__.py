"""Driver adapters for SQLSimply."""
