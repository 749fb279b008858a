"""Command-line interface for Folio."""
