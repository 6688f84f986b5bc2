"""
Custom exception classes for the DocVault application.
"""

from typing import Optional


class DocVaultException(Exception):
    """Base exception for all DocVault errors."""

    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(self.message)


class ConfigurationError(DocVaultException):
    """Raised when required configuration is missing or malformed."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(f"Configuration error: {message}", detail)


class TamperError(DocVaultException):
    """Raised when an encrypted secret fails authentication on decryption."""

    def __init__(self, message: str = "Encrypted secret failed authentication", detail: Optional[str] = None):
        super().__init__(message, detail)


class AuthenticationError(DocVaultException):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed", detail: Optional[str] = None):
        super().__init__(message, detail)


class PermissionDeniedError(DocVaultException):
    """Raised when an authenticated principal may not perform an action."""

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        rule: Optional[str] = None,
        detail: Optional[str] = None,
    ):
        super().__init__(message, detail)
        self.rule = rule


class NotFoundError(DocVaultException):
    """Raised when a requested resource does not exist."""

    def __init__(self, resource: str, resource_id: Optional[str] = None, detail: Optional[str] = None):
        message = f"{resource} not found" if resource_id is None else f"{resource} not found: {resource_id}"
        super().__init__(message, detail)
        self.resource = resource
        self.resource_id = resource_id


class DocumentNotFoundError(NotFoundError):
    """Raised when a document is not found."""

    def __init__(self, document_id: str, detail: Optional[str] = None):
        super().__init__("Document", str(document_id), detail)
        self.document_id = document_id


class ConflictError(DocVaultException):
    """Raised when a write collides with existing state (duplicate email, slug...)."""


class ValidationError(DocVaultException):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None, detail: Optional[str] = None):
        if field:
            message = f"Validation error for field '{field}': {message}"
        super().__init__(message, detail)
        self.field = field


class UnsupportedFileTypeError(ValidationError):
    """Raised when an uploaded file cannot be parsed."""

    def __init__(self, filename: str, detail: Optional[str] = None):
        super().__init__(f"Unsupported file type: {filename}", field="file", detail=detail)
        self.filename = filename


class AIProviderError(DocVaultException):
    """Raised when an AI provider request fails."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(f"AI provider error: {message}", detail)
