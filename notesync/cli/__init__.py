"""Command-line interface for operating the sync core."""
