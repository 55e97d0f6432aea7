"""Database base classes and session management."""
