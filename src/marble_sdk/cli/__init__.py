"""Command-line interface for the Marble API."""
