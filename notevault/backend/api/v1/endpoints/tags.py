"""
Tag API Endpoints.

Per-user tag CRUD. Tags of other users are reported as not found.
"""

from fastapi import APIRouter

from notevault.backend.core.dependencies import CurrentUser, DbSession
from notevault.backend.schemas.base import ApiResponse
from notevault.backend.schemas.tag import (
    TagCreate,
    TagDetailResponse,
    TagResponse,
    TaggedNote,
    TagUpdate,
)
from notevault.backend.services.tag import TagService

router = APIRouter()


@router.get("", summary="List the caller's tags")
async def list_tags(db: DbSession, user: CurrentUser) -> ApiResponse[list[TagResponse]]:
    tags = await TagService(db).list_tags(user)
    return ApiResponse(data=[TagResponse.model_validate(tag) for tag in tags])


@router.post("", response_model=ApiResponse[TagResponse], status_code=201, summary="Create a tag")
async def create_tag(data: TagCreate, db: DbSession, user: CurrentUser) -> ApiResponse[TagResponse]:
    tag = await TagService(db).create_tag(user, data.name, data.color)
    return ApiResponse(data=TagResponse.model_validate(tag))


@router.get(
    "/{tag_id}",
    response_model=ApiResponse[TagDetailResponse],
    summary="Get a tag with the notes carrying it",
)
async def get_tag(tag_id: str, db: DbSession, user: CurrentUser) -> ApiResponse[TagDetailResponse]:
    tag, notes = await TagService(db).get_tag_with_notes(tag_id, user)
    detail = TagDetailResponse(
        **TagResponse.model_validate(tag).model_dump(),
        notes=[TaggedNote.model_validate(note) for note in notes],
    )
    return ApiResponse(data=detail)


@router.patch("/{tag_id}", response_model=ApiResponse[TagResponse], summary="Update a tag")
async def update_tag(
    tag_id: str,
    data: TagUpdate,
    db: DbSession,
    user: CurrentUser,
) -> ApiResponse[TagResponse]:
    tag = await TagService(db).update_tag(tag_id, user, data.model_dump(exclude_unset=True))
    return ApiResponse(data=TagResponse.model_validate(tag))


@router.delete("/{tag_id}", status_code=204, summary="Delete a tag")
async def delete_tag(tag_id: str, db: DbSession, user: CurrentUser) -> None:
    await TagService(db).delete_tag(tag_id, user)
