"""
Main API router configuration.
"""

from fastapi import APIRouter
from app.api.endpoints import admin, ai_actions, ai_keys, audit, auth, documents, organizations, users

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(auth.router, prefix="/auth", tags=["authentication"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(organizations.router, prefix="/organizations", tags=["organizations"])
api_router.include_router(documents.router, prefix="/documents", tags=["documents"])
api_router.include_router(ai_keys.router, prefix="/ai-keys", tags=["ai-keys"])
api_router.include_router(ai_actions.router, prefix="/ai", tags=["ai"])
api_router.include_router(audit.router, prefix="/audit-logs", tags=["audit"])
api_router.include_router(admin.router, prefix="/admin", tags=["administration"])
