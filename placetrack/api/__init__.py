"""HTTP transport helpers."""
