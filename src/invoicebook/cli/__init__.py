"""Command line interface for invoicebook."""
