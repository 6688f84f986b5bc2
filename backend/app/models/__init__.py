"""
Database models for the DocVault application.
"""

from .organization import Organization
from .user import User, ApprovalStatus
from .document import Document, DocumentComment, DocumentPassword, DocumentStatus
from .ai_key import AiApiKey, AiProvider
from .audit_log import AuditLog

__all__ = [
    "Organization",
    "User",
    "ApprovalStatus",
    "Document",
    "DocumentComment",
    "DocumentPassword",
    "DocumentStatus",
    "AiApiKey",
    "AiProvider",
    "AuditLog",
]
