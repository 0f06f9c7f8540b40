"""Command-line interface for tinyvcs."""
