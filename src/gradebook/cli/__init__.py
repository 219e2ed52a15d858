"""Command-line interface for the gradebook."""
