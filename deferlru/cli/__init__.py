"""Command-line interface for deferlru."""
