"""
Utility modules for the DocVault application.
"""

from .exceptions import (
    DocVaultException,
    ConfigurationError,
    TamperError,
    AuthenticationError,
    PermissionDeniedError,
    NotFoundError,
    DocumentNotFoundError,
    ConflictError,
    ValidationError,
)

__all__ = [
    "DocVaultException",
    "ConfigurationError",
    "TamperError",
    "AuthenticationError",
    "PermissionDeniedError",
    "NotFoundError",
    "DocumentNotFoundError",
    "ConflictError",
    "ValidationError",
]
