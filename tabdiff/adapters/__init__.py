"""File format adapters."""
