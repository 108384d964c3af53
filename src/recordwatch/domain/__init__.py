"""Domain layer for recordwatch."""
