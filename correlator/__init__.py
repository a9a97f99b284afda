"""GitHub event correlation engine for the project-management service."""

__version__ = "0.1.0"
