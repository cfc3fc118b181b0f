"""Relational data access for the book catalog."""

__version__ = "0.1.0"
