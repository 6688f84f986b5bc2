"""
Document management API endpoints.
"""

from typing import List, Optional
from uuid import UUID
from fastapi import APIRouter, Depends, File, Form, Header, Query, Request, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.rate_limit import limiter, UPLOAD_LIMIT
from app.models.user import User
from app.services.access_service import AccessService, get_access_service
from app.services.auth_service import get_current_user
from app.services.comment_service import comment_service
from app.services.document_parser import parse_file
from app.services.document_service import document_service
from app.schemas.common import PaginatedResponse, SuccessResponse
from app.schemas.document import (
    CommentCreate,
    CommentResponse,
    DocumentCreate,
    DocumentPasswordSet,
    DocumentPasswordVerify,
    DocumentResponse,
    DocumentUpdate,
)
from app.utils.exceptions import ValidationError
from app.utils.formatters import format_file_size
from app.utils.helpers import sanitize_filename

router = APIRouter()


@router.get("/", response_model=PaginatedResponse[DocumentResponse])
async def get_documents(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    tag: Optional[str] = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get paginated list of documents visible to the current user.

    Args:
        page: Page number (1-indexed)
        page_size: Number of items per page (1-100)
        search: Optional title search
        status_filter: Optional workflow status
        tag: Optional tag
    """
    documents, total = await document_service.list_documents(
        current_user,
        db,
        page=page,
        page_size=page_size,
        search=search,
        status=status_filter,
        tag=tag,
    )
    return PaginatedResponse.create(
        items=[DocumentResponse.model_validate(d) for d in documents],
        total=total,
        page=page,
        page_size=page_size
    )


@router.post("/", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_document(
    document_data: DocumentCreate,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    document = await document_service.create_document(current_user, document_data, access, db)
    return DocumentResponse.model_validate(document)


@router.post("/upload", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(UPLOAD_LIMIT)
async def upload_document(
    request: Request,
    file: UploadFile = File(...),
    title: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    is_public: bool = Form(False),
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    """Upload a file; its text becomes the document content and the binary is discarded."""
    file_content = await file.read()
    if len(file_content) > settings.MAX_UPLOAD_BYTES:
        raise ValidationError(
            f"File size ({format_file_size(len(file_content))}) exceeds maximum allowed size of "
            f"{format_file_size(settings.MAX_UPLOAD_BYTES)}",
            field="file"
        )

    parsed = parse_file(sanitize_filename(file.filename or ""), file_content)

    tag_list = [tag.strip() for tag in tags.split(",") if tag.strip()] if tags else []
    document = await document_service.create_from_upload(
        current_user,
        parsed,
        access,
        db,
        title=title,
        is_public=is_public,
        tags=tag_list,
    )
    return DocumentResponse.model_validate(document)


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: UUID,
    x_document_password: Optional[str] = Header(None),
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    """Get a document. Password-protected documents need ``X-Document-Password`` from non-owners."""
    document = await document_service.get_document(
        current_user, document_id, access, db, password=x_document_password
    )
    return DocumentResponse.model_validate(document)


@router.put("/{document_id}", response_model=DocumentResponse)
async def update_document(
    document_id: UUID,
    document_data: DocumentUpdate,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    document = await document_service.update_document(current_user, document_id, document_data, access, db)
    return DocumentResponse.model_validate(document)


@router.delete("/{document_id}", response_model=SuccessResponse)
async def delete_document(
    document_id: UUID,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    await document_service.delete_document(current_user, document_id, access, db)
    return SuccessResponse(message="Document deleted successfully")


@router.post("/{document_id}/password", response_model=DocumentResponse)
async def set_document_password(
    document_id: UUID,
    password_data: DocumentPasswordSet,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Protect a document with a 9-digit code (owner only)."""
    document = await document_service.set_password(current_user, document_id, password_data.password, db)
    return DocumentResponse.model_validate(document)


@router.delete("/{document_id}/password", response_model=DocumentResponse)
async def remove_document_password(
    document_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    document = await document_service.remove_password(current_user, document_id, db)
    return DocumentResponse.model_validate(document)


@router.post("/{document_id}/password/verify")
async def verify_document_password(
    document_id: UUID,
    password_data: DocumentPasswordVerify,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    valid = await document_service.verify_password(current_user, document_id, password_data.password, access, db)
    return {"valid": valid}


@router.get("/{document_id}/comments", response_model=List[CommentResponse])
async def list_comments(
    document_id: UUID,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    return await comment_service.list_comments(current_user, document_id, access, db)


@router.post("/{document_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    document_id: UUID,
    comment_data: CommentCreate,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    return await comment_service.add_comment(
        current_user,
        document_id,
        comment_data.content,
        access,
        db,
        parent_id=comment_data.parent_id,
    )


@router.delete("/comments/{comment_id}", response_model=SuccessResponse)
async def delete_comment(
    comment_id: UUID,
    current_user: User = Depends(get_current_user),
    access: AccessService = Depends(get_access_service),
    db: AsyncSession = Depends(get_db)
):
    await comment_service.delete_comment(current_user, comment_id, access, db)
    return SuccessResponse(message="Comment deleted successfully")
