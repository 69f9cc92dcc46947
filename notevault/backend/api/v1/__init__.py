"""
API Version 1 Router.

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from notevault.backend.api.v1.endpoints import admin, attachments, auth, notes, shares, tags, versions

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])

router.include_router(notes.router, prefix="/notes", tags=["notes"])
router.include_router(shares.router, prefix="/notes/{note_id}/shares", tags=["shares"])
router.include_router(versions.router, prefix="/notes/{note_id}/versions", tags=["versions"])
router.include_router(attachments.router, prefix="/notes/{note_id}/attachments", tags=["attachments"])

router.include_router(tags.router, prefix="/tags", tags=["tags"])
router.include_router(admin.router, prefix="/admin", tags=["admin"])
