"""
Centralized exception hierarchy for domain-specific errors.

This module provides custom exception classes that represent specific
error conditions in the territory engine, enabling the HTTP layer to map
them onto status codes and clients to recover.
"""


class StrideWarsError(Exception):
    """Base exception for all application-specific errors."""

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(StrideWarsError):
    """Exception raised when request data validation fails."""


class InvalidRegionError(ValidationError):
    """Exception raised when a bounding box is degenerate or out of range."""


class ResourceNotFoundError(StrideWarsError):
    """Exception raised when a requested resource is not found."""


class DuplicateResourceError(StrideWarsError):
    """Exception raised when attempting to create a duplicate resource."""


class TransientStoreError(StrideWarsError):
    """Exception raised when the persistence layer fails."""


class ConcurrentUpdateError(TransientStoreError):
    """Exception raised when a compare-and-set write keeps losing races."""
