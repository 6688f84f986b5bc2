"""
Encrypted AI provider API keys.

The three columns ``encrypted_key``, ``iv`` and ``auth_tag`` hold the hex output
of ``SecretCipher.encrypt``; plaintext is never stored.
"""

from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
import uuid

from app.core.database import Base
from app.services.secret_cipher import EncryptedSecret


class AiProvider:
    GROQ = "groq"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"

    ALL = (GROQ, OPENAI, ANTHROPIC)


class AiApiKey(Base):
    """One stored credential for an AI provider."""

    __tablename__ = "ai_api_keys"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    provider = Column(String(20), nullable=False)

    encrypted_key = Column(Text, nullable=False)
    iv = Column(String(32), nullable=False)
    auth_tag = Column(String(32), nullable=False)

    label = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), default=datetime.utcnow)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="ai_keys")

    def __repr__(self):
        return f"<AiApiKey(id={self.id}, provider='{self.provider}', user_id={self.user_id})>"

    def to_encrypted_secret(self) -> EncryptedSecret:
        return EncryptedSecret(ciphertext=self.encrypted_key, iv=self.iv, auth_tag=self.auth_tag)
