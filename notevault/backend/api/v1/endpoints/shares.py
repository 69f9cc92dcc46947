"""
Share API Endpoints.

Nested under /notes/{note_id}/shares. Only the note owner may create or
revoke shares; anyone who can read the note may list them.
"""

from fastapi import APIRouter

from notevault.backend.core.dependencies import CurrentUser, DbSession
from notevault.backend.schemas.base import ApiResponse
from notevault.backend.schemas.share import ShareCreate, ShareResponse
from notevault.backend.services.share import ShareService

router = APIRouter()


@router.get("", summary="List a note's shares")
async def list_shares(
    note_id: str,
    db: DbSession,
    user: CurrentUser,
) -> ApiResponse[list[ShareResponse]]:
    shares = await ShareService(db).list_shares(note_id, user)
    return ApiResponse(data=[ShareResponse.model_validate(share) for share in shares])


@router.post(
    "",
    response_model=ApiResponse[ShareResponse],
    status_code=201,
    summary="Share a note with another user",
)
async def create_share(
    note_id: str,
    data: ShareCreate,
    db: DbSession,
    user: CurrentUser,
) -> ApiResponse[ShareResponse]:
    share = await ShareService(db).share(note_id, user, data.email, data.permission)
    return ApiResponse(data=ShareResponse.model_validate(share))


@router.delete("/{share_id}", status_code=204, summary="Revoke a share")
async def revoke_share(
    note_id: str,
    share_id: str,
    db: DbSession,
    user: CurrentUser,
) -> None:
    await ShareService(db).revoke(note_id, user, share_id)
