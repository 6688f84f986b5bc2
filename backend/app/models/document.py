"""
Document-related database models.
"""

from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
import uuid

from app.core.database import Base


class DocumentStatus:
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"
    UNDER_REVIEW = "under_review"


class Document(Base):
    """Document metadata and content."""

    __tablename__ = "documents"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    ref_number = Column(Integer, nullable=False, unique=True, index=True)
    title = Column(String(500), nullable=False)
    content = Column(Text, nullable=False, default="")
    description = Column(Text, nullable=True)

    # Upload metadata (binary itself is not stored)
    file_type = Column(String(20), nullable=True)  # pdf, docx, txt, html, etc.
    file_size = Column(Integer, default=0)

    # Ownership and tenancy
    owner_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    org_id = Column(UUID(as_uuid=True), ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)

    # Visibility and classification
    is_public = Column(Boolean, default=False, nullable=False)
    tags = Column(JSON, nullable=True)  # List of tags
    classification = Column(String(20), default="general", nullable=False)
    access_level = Column(String(20), default="view_only", nullable=False)
    is_password_protected = Column(Boolean, default=False, nullable=False)

    # Workflow
    version = Column(Integer, default=1, nullable=False)
    status = Column(String(20), default=DocumentStatus.DRAFT, nullable=False)
    reviewers = Column(JSON, nullable=True)  # List of user ids

    # Timestamps
    last_accessed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    owner = relationship("User")
    comments = relationship("DocumentComment", back_populates="document", cascade="all, delete-orphan")
    password = relationship("DocumentPassword", back_populates="document", cascade="all, delete-orphan", uselist=False)

    def __repr__(self):
        return f"<Document(id={self.id}, ref={self.ref_number}, title='{self.title}')>"


class DocumentComment(Base):
    """Threaded comment on a document."""

    __tablename__ = "document_comments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    document_id = Column(UUID(as_uuid=True), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    parent_id = Column(UUID(as_uuid=True), ForeignKey("document_comments.id", ondelete="CASCADE"), nullable=True)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    document = relationship("Document", back_populates="comments")
    author = relationship("User")


class DocumentPassword(Base):
    """bcrypt hash of the 9-digit code protecting a document from non-owners."""

    __tablename__ = "document_passwords"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    document_id = Column(UUID(as_uuid=True), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, unique=True)
    password_hash = Column(String(128), nullable=False)
    set_by = Column(UUID(as_uuid=True), nullable=False)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    document = relationship("Document", back_populates="password")
