"""
Authentication service for registration, login and JWT tokens.
"""

import hashlib
import re
from datetime import datetime, timedelta
from typing import Optional, Tuple
from uuid import UUID

import bcrypt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.models.organization import Organization
from app.models.user import ApprovalStatus, User
from app.services.audit_service import audit_service
from app.services.role_authority import Role, is_at_least
from app.utils.exceptions import AuthenticationError, ConflictError, NotFoundError, PermissionDeniedError, ValidationError

ORG_CODE_RE = re.compile(r"^[A-Z0-9]{4,16}$")


def normalize_email(email: str) -> str:
    return email.strip().lower()


def hash_secret(value: str, rounds: Optional[int] = None) -> str:
    """bcrypt-hash a password or access code."""
    value_bytes = value.encode("utf-8")

    # bcrypt only looks at 72 bytes; pre-hash longer inputs
    if len(value_bytes) > 72:
        value_bytes = hashlib.sha256(value_bytes).hexdigest().encode("utf-8")

    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(value_bytes, salt).decode("utf-8")


def verify_secret(value: str, hashed: str) -> bool:
    """Check a password or access code against its bcrypt hash."""
    value_bytes = value.encode("utf-8")
    if len(value_bytes) > 72:
        value_bytes = hashlib.sha256(value_bytes).hexdigest().encode("utf-8")
    try:
        return bcrypt.checkpw(value_bytes, hashed.encode("utf-8"))
    except ValueError:
        return False


class AuthService:
    """Service for authentication and authorization."""

    def hash_password(self, password: str) -> str:
        return hash_secret(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        return verify_secret(plain_password, hashed_password)

    def create_access_token(self, user_id: UUID) -> str:
        """Create a JWT access token."""
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        to_encode = {
            "sub": str(user_id),
            "exp": expire,
            "type": "access"
        }
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    async def get_user_by_email(self, email: str, db: AsyncSession) -> Optional[User]:
        result = await db.execute(
            select(User).where(User.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id, db: AsyncSession) -> Optional[User]:
        try:
            user_uuid = user_id if isinstance(user_id, UUID) else UUID(str(user_id))
        except ValueError:
            return None
        result = await db.execute(select(User).where(User.id == user_uuid))
        return result.scalar_one_or_none()

    async def resolve_org_code(self, org_code: str, db: AsyncSession) -> Organization:
        code = org_code.strip().upper()
        if not ORG_CODE_RE.match(code):
            raise ValidationError("Organization code must be 4-16 alphanumeric characters", field="org_code")

        result = await db.execute(select(Organization).where(Organization.org_code == code))
        org = result.scalar_one_or_none()
        if org is None:
            raise NotFoundError("Organization", detail="Invalid organization code. Please check and try again.")
        return org

    async def create_user(
        self,
        email: str,
        password: str,
        full_name: str,
        db: AsyncSession,
        role: str = Role.USER.value,
        org_id: Optional[UUID] = None,
        approval_status: str = ApprovalStatus.APPROVED,
    ) -> User:
        """Create a new user; the caller is responsible for authorization."""
        email = normalize_email(email)
        if await self.get_user_by_email(email, db):
            raise ConflictError("An account with this email already exists")

        user = User(
            email=email,
            full_name=full_name.strip(),
            hashed_password=self.hash_password(password),
            role=Role(role).value,
            org_id=org_id,
            approval_status=approval_status,
            is_active=True,
            login_count=0,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)

        logger.info(f"Created new user {user.id} with role {user.role}")
        return user

    async def register(
        self,
        email: str,
        password: str,
        full_name: str,
        db: AsyncSession,
        org_code: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> User:
        """
        Self-service registration.

        Joining an organization by code leaves the account pending until a
        super admin of that organization approves it.
        """
        org_id = None
        approval_status = ApprovalStatus.APPROVED
        if org_code and org_code.strip():
            org = await self.resolve_org_code(org_code, db)
            org_id = org.id
            approval_status = ApprovalStatus.PENDING

        user = await self.create_user(
            email=email,
            password=password,
            full_name=full_name,
            db=db,
            org_id=org_id,
            approval_status=approval_status,
        )

        await audit_service.record(
            db,
            user_id=user.id,
            action="register",
            resource_type="auth",
            details={"method": "email", "org_code": org_code or None, "approval_status": approval_status},
            org_id=org_id,
            ip_address=ip_address,
        )
        return user

    async def authenticate_user(self, email: str, password: str, db: AsyncSession) -> Optional[User]:
        """Return the user for valid credentials, else None."""
        user = await self.get_user_by_email(email, db)

        if not user or not user.is_active:
            return None

        if not self.verify_password(password, user.hashed_password):
            return None

        return user

    async def login(
        self,
        email: str,
        password: str,
        db: AsyncSession,
        ip_address: Optional[str] = None,
    ) -> Tuple[User, str]:
        """Authenticate and issue a token; pending or rejected members are refused."""
        user = await self.authenticate_user(email, password, db)
        if user is None:
            raise AuthenticationError("Invalid email or password")

        if user.approval_status == ApprovalStatus.PENDING:
            raise PermissionDeniedError(
                "Your organization membership is pending approval from a Super Admin. Please try again later.",
                rule="approval_pending",
            )
        if user.approval_status == ApprovalStatus.REJECTED:
            raise PermissionDeniedError(
                "Your organization membership request was rejected. Please contact the Super Admin for more information.",
                rule="approval_rejected",
            )

        user.last_login = datetime.utcnow()
        user.login_count = (user.login_count or 0) + 1
        await audit_service.record(
            db,
            user_id=user.id,
            action="login",
            resource_type="auth",
            details={"method": "email"},
            org_id=user.org_id,
            ip_address=ip_address,
            commit=False,
        )
        await db.commit()
        await db.refresh(user)

        return user, self.create_access_token(user.id)

    async def update_password(
        self,
        user: User,
        current_password: str,
        new_password: str,
        db: AsyncSession
    ) -> bool:
        """Update user password."""
        if not self.verify_password(current_password, user.hashed_password):
            return False

        user.hashed_password = self.hash_password(new_password)
        user.updated_at = datetime.utcnow()

        await db.commit()
        logger.info(f"Password updated for user {user.id}")
        return True

    async def get_current_user(
        self,
        credentials: HTTPAuthorizationCredentials,
        db: AsyncSession,
    ) -> User:
        """Get current user from JWT token."""
        credentials_exception = HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

        if credentials is None:
            raise credentials_exception

        try:
            payload = jwt.decode(
                credentials.credentials,
                settings.SECRET_KEY,
                algorithms=[settings.ALGORITHM]
            )
            user_id: str = payload.get("sub")
            if user_id is None:
                raise credentials_exception
        except JWTError:
            raise credentials_exception

        user = await self.get_user_by_id(user_id, db)
        if user is None:
            raise credentials_exception

        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="User account is disabled"
            )

        if user.approval_status != ApprovalStatus.APPROVED:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Organization membership is not approved"
            )

        return user


# Global instance for dependency injection
auth_service = AuthService()
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Dependency for getting current user."""
    return await auth_service.get_current_user(credentials, db)


async def require_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    """Dependency for requiring admin privileges."""
    if not is_at_least(current_user.role, Role.ADMIN):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required"
        )
    return current_user
