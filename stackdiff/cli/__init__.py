"""Command-line interface for stackdiff."""
