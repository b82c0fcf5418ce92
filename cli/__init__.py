"""Command line interface for netopt."""
