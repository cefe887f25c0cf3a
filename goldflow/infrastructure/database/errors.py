"""Persistence-layer exceptions."""


class RepositoryException(Exception):
    """Base exception for repository layer errors."""


class DatabaseError(RepositoryException):
    """Raised when a database operation fails."""
