"""Pydantic schemas: command models, pagination and response views."""
