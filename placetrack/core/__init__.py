"""Configuration, logging and error kinds."""
