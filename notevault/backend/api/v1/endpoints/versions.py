"""
Note Version API Endpoints.

Nested under /notes/{note_id}/versions. Versions are read-only; restoring
one writes its content back onto the note.
"""

from fastapi import APIRouter

from notevault.backend.core.dependencies import CurrentUser, DbSession
from notevault.backend.schemas.base import ApiResponse
from notevault.backend.schemas.note import NoteResponse
from notevault.backend.schemas.version import VersionDetailResponse, VersionResponse
from notevault.backend.services.note_version import NoteVersionService

router = APIRouter()


@router.get("", summary="List a note's versions, newest first")
async def list_versions(
    note_id: str,
    db: DbSession,
    user: CurrentUser,
) -> ApiResponse[list[VersionResponse]]:
    versions = await NoteVersionService(db).list_versions(note_id, user)
    return ApiResponse(data=[VersionResponse.model_validate(v) for v in versions])


@router.get(
    "/{version_id}",
    response_model=ApiResponse[VersionDetailResponse],
    summary="Get a version with its diff against the current note",
)
async def get_version(
    note_id: str,
    version_id: str,
    db: DbSession,
    user: CurrentUser,
) -> ApiResponse[VersionDetailResponse]:
    version, diff = await NoteVersionService(db).get_version(note_id, version_id, user)
    detail = VersionDetailResponse(
        **VersionResponse.model_validate(version).model_dump(),
        diff_from_current=diff.as_dict(),
    )
    return ApiResponse(data=detail)


@router.post(
    "/{version_id}/restore",
    response_model=ApiResponse[NoteResponse],
    summary="Restore a note to a previous version",
)
async def restore_version(
    note_id: str,
    version_id: str,
    db: DbSession,
    user: CurrentUser,
) -> ApiResponse[NoteResponse]:
    note = await NoteVersionService(db).restore_version(note_id, version_id, user)
    return ApiResponse(data=NoteResponse.model_validate(note))
