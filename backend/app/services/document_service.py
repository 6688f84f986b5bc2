"""
Document service: CRUD, visibility rules, password protection and uploads.
"""

from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from loguru import logger
from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.document import Document, DocumentPassword
from app.models.user import User
from app.schemas.document import DocumentCreate, DocumentUpdate
from app.services.access_service import AccessService
from app.services.audit_service import audit_service
from app.services.auth_service import hash_secret, verify_secret
from app.services.document_parser import ParsedFile
from app.services.role_authority import Action, Resource, Role, is_at_least
from app.utils.exceptions import DocumentNotFoundError, NotFoundError, PermissionDeniedError, ValidationError


class DocumentService:
    """Service for managing documents."""

    async def get_by_id(self, document_id: UUID, db: AsyncSession) -> Document:
        document = await db.get(Document, document_id)
        if document is None:
            raise DocumentNotFoundError(str(document_id))
        return document

    async def next_ref_number(self, db: AsyncSession) -> int:
        current = (await db.execute(select(func.max(Document.ref_number)))).scalar()
        return (current or 0) + 1

    async def ensure_visible(self, actor: User, document: Document, access: AccessService) -> None:
        """Tenant boundary first, then private documents are limited to owner and admin+."""
        await access.require(
            actor,
            Action.READ,
            Resource.DOCUMENT,
            owner_id=document.owner_id,
            resource_org_id=document.org_id,
        )
        is_owner = str(document.owner_id) == str(actor.id)
        if not document.is_public and not is_owner and not is_at_least(actor.role, Role.ADMIN):
            raise PermissionDeniedError("This document is private", rule="document_private")

    async def create_document(
        self,
        actor: User,
        data: DocumentCreate,
        access: AccessService,
        db: AsyncSession,
        parsed: Optional[ParsedFile] = None,
    ) -> Document:
        if actor.org_id is None:
            raise ValidationError("You must belong to an organization to create documents")
        await access.require(actor, Action.CREATE, Resource.DOCUMENT, resource_org_id=actor.org_id)

        document = Document(
            ref_number=await self.next_ref_number(db),
            title=data.title.strip(),
            content=data.content,
            description=data.description,
            owner_id=actor.id,
            org_id=actor.org_id,
            is_public=data.is_public,
            tags=list(data.tags),
            classification=data.classification,
            access_level=data.access_level,
            status=data.status,
            version=1,
            file_type=parsed.file_type if parsed else None,
            file_size=parsed.file_size if parsed else len(data.content.encode("utf-8")),
        )
        db.add(document)
        await db.flush()

        await audit_service.record(
            db,
            user_id=actor.id,
            action="create",
            resource_type="document",
            resource_id=document.id,
            details={"title": document.title, "ref_number": document.ref_number, "file_type": document.file_type},
            org_id=document.org_id,
            commit=False,
        )
        await db.commit()
        await db.refresh(document)

        logger.info(f"Document {document.id} (ref {document.ref_number}) created by {actor.id}")
        return document

    async def create_from_upload(
        self,
        actor: User,
        parsed: ParsedFile,
        access: AccessService,
        db: AsyncSession,
        title: Optional[str] = None,
        is_public: bool = False,
        tags: Optional[List[str]] = None,
    ) -> Document:
        data = DocumentCreate(
            title=title or parsed.title,
            content=parsed.content,
            is_public=is_public,
            tags=tags or [],
        )
        return await self.create_document(actor, data, access, db, parsed=parsed)

    async def list_documents(
        self,
        actor: User,
        db: AsyncSession,
        page: int = 1,
        page_size: int = 20,
        search: Optional[str] = None,
        status: Optional[str] = None,
        tag: Optional[str] = None,
    ) -> Tuple[List[Document], int]:
        """
        Documents visible to ``actor``.

        god sees everything, admin+ sees its whole organization, and users see
        public documents in their organization plus their own.
        """
        query = select(Document)
        if actor.role != Role.GOD.value:
            query = query.where(Document.org_id == actor.org_id)
            if not is_at_least(actor.role, Role.ADMIN):
                query = query.where(or_(Document.is_public.is_(True), Document.owner_id == actor.id))

        if search:
            query = query.where(Document.title.ilike(f"%{search}%"))
        if status:
            query = query.where(Document.status == status)
        if tag:
            query = query.where(cast(Document.tags, String).like(f'%"{tag}"%'))

        total = (await db.execute(select(func.count()).select_from(query.subquery()))).scalar() or 0
        result = await db.execute(
            query.order_by(Document.updated_at.desc()).offset((page - 1) * page_size).limit(page_size)
        )
        return list(result.scalars().all()), total

    async def get_document(
        self,
        actor: User,
        document_id: UUID,
        access: AccessService,
        db: AsyncSession,
        password: Optional[str] = None,
    ) -> Document:
        document = await self.get_by_id(document_id, db)
        await self.ensure_visible(actor, document, access)

        if document.is_password_protected and str(document.owner_id) != str(actor.id):
            if not password or not await self._password_matches(document.id, password, db):
                raise PermissionDeniedError("This document is password protected", rule="document_password")

        document.last_accessed_at = datetime.utcnow()
        await db.commit()
        await db.refresh(document)
        return document

    async def update_document(
        self,
        actor: User,
        document_id: UUID,
        data: DocumentUpdate,
        access: AccessService,
        db: AsyncSession,
    ) -> Document:
        document = await self.get_by_id(document_id, db)
        await access.require(
            actor,
            Action.UPDATE,
            Resource.DOCUMENT,
            owner_id=document.owner_id,
            resource_org_id=document.org_id,
        )

        changes = data.model_dump(exclude_unset=True)
        if "reviewers" in changes and changes["reviewers"] is not None:
            changes["reviewers"] = [str(r) for r in changes["reviewers"]]
        if changes.get("title"):
            changes["title"] = changes["title"].strip()

        for field, value in changes.items():
            setattr(document, field, value)
        document.version = (document.version or 1) + 1
        document.updated_at = datetime.utcnow()

        await audit_service.record(
            db,
            user_id=actor.id,
            action="update",
            resource_type="document",
            resource_id=document.id,
            details={"fields": sorted(changes), "version": document.version},
            org_id=document.org_id,
            commit=False,
        )
        await db.commit()
        await db.refresh(document)
        return document

    async def delete_document(self, actor: User, document_id: UUID, access: AccessService, db: AsyncSession) -> None:
        document = await self.get_by_id(document_id, db)
        owner = await db.get(User, document.owner_id)
        await access.require_document_delete(actor, document, owner.role if owner else None)

        await audit_service.record(
            db,
            user_id=actor.id,
            action="delete",
            resource_type="document",
            resource_id=document.id,
            details={"title": document.title, "ref_number": document.ref_number},
            org_id=document.org_id,
            commit=False,
        )
        await db.delete(document)
        await db.commit()
        logger.info(f"Document {document_id} deleted by {actor.id}")

    async def _password_record(self, document_id: UUID, db: AsyncSession) -> Optional[DocumentPassword]:
        result = await db.execute(select(DocumentPassword).where(DocumentPassword.document_id == document_id))
        return result.scalar_one_or_none()

    async def _password_matches(self, document_id: UUID, password: str, db: AsyncSession) -> bool:
        record = await self._password_record(document_id, db)
        return record is not None and verify_secret(password, record.password_hash)

    def _require_owner(self, actor: User, document: Document, message: str) -> None:
        # Protection is aimed at admins too, so the hierarchy does not apply here
        if str(document.owner_id) != str(actor.id):
            raise PermissionDeniedError(message, rule="document_password_owner")

    async def set_password(self, actor: User, document_id: UUID, password: str, db: AsyncSession) -> Document:
        document = await self.get_by_id(document_id, db)
        self._require_owner(actor, document, "Only the document owner can set a password")

        record = await self._password_record(document.id, db)
        if record is None:
            record = DocumentPassword(document_id=document.id, password_hash=hash_secret(password), set_by=actor.id)
            db.add(record)
        else:
            record.password_hash = hash_secret(password)
            record.set_by = actor.id
            record.updated_at = datetime.utcnow()
        document.is_password_protected = True

        await audit_service.record(
            db,
            user_id=actor.id,
            action="document_password_set",
            resource_type="document",
            resource_id=document.id,
            org_id=document.org_id,
            commit=False,
        )
        await db.commit()
        await db.refresh(document)
        return document

    async def remove_password(self, actor: User, document_id: UUID, db: AsyncSession) -> Document:
        document = await self.get_by_id(document_id, db)
        self._require_owner(actor, document, "Only the document owner can remove the password")

        record = await self._password_record(document.id, db)
        if record is not None:
            await db.delete(record)
        document.is_password_protected = False

        await audit_service.record(
            db,
            user_id=actor.id,
            action="document_password_removed",
            resource_type="document",
            resource_id=document.id,
            org_id=document.org_id,
            commit=False,
        )
        await db.commit()
        await db.refresh(document)
        return document

    async def verify_password(
        self,
        actor: User,
        document_id: UUID,
        password: str,
        access: AccessService,
        db: AsyncSession,
    ) -> bool:
        document = await self.get_by_id(document_id, db)
        await self.ensure_visible(actor, document, access)

        record = await self._password_record(document.id, db)
        if record is None:
            raise NotFoundError("Document password", detail="No password set for this document")
        return verify_secret(password, record.password_hash)


document_service = DocumentService()
