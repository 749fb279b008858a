"""CLI commands for Folio."""
