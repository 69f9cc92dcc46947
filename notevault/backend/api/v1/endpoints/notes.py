"""
Notes API Endpoints.

REST API endpoints for notes: CRUD, lifecycle transitions, duplicate and
merge, export, search and the trash view.
"""

from typing import Any

from fastapi import APIRouter, Depends, Query

from notevault.backend.core.dependencies import CurrentUser, DbSession, RequestId, Store
from notevault.backend.core.pagination import (
    PaginationParams,
    create_paginated_response,
    get_pagination_params,
)
from notevault.backend.repositories.note import NoteFilter, NoteSort, SortDirection
from notevault.backend.schemas.base import ApiResponse
from notevault.backend.schemas.note import (
    BulkExportRequest,
    BulkExportResponse,
    ExportResponse,
    NoteCreate,
    NoteDeleteResponse,
    NoteListResponse,
    NoteMerge,
    NoteResponse,
    NoteUpdate,
)
from notevault.backend.services.attachment import AttachmentService
from notevault.backend.services.note import NoteService

router = APIRouter()


@router.get(
    "",
    summary="List notes (paginated)",
    description="Notes the caller owns or that are shared with them.",
)
async def list_notes(
    db: DbSession,
    user: CurrentUser,
    request_id: RequestId,
    pagination: PaginationParams = Depends(get_pagination_params),
    filter: NoteFilter = Query(default=NoteFilter.ACTIVE, description="Lifecycle slice"),
    sort: NoteSort = Query(default=NoteSort.UPDATED, description="Ordering"),
    direction: SortDirection = Query(default=SortDirection.DESC),
) -> dict[str, Any]:
    service = NoteService(db)
    notes, total = await service.list_notes(
        user,
        note_filter=filter,
        sort=sort,
        direction=direction,
        limit=pagination.limit,
        offset=pagination.offset,
    )
    return create_paginated_response(
        items=notes,
        item_schema=NoteListResponse,
        total=total,
        limit=pagination.limit,
        offset=pagination.offset,
        request_id=request_id,
    )


@router.post(
    "",
    response_model=ApiResponse[NoteResponse],
    status_code=201,
    summary="Create a note",
)
async def create_note(
    data: NoteCreate,
    db: DbSession,
    user: CurrentUser,
) -> ApiResponse[NoteResponse]:
    note = await NoteService(db).create_note(
        user,
        title=data.title,
        body=data.body,
        max_size=data.max_size,
        pinned=data.pinned,
        tag_ids=data.tag_ids,
    )
    return ApiResponse(data=NoteResponse.model_validate(note))


@router.get(
    "/search",
    summary="Full-text search",
    description="Stemmed, case-insensitive search over accessible, non-trashed notes. "
    "A blank query returns no results.",
)
async def search_notes(
    db: DbSession,
    user: CurrentUser,
    request_id: RequestId,
    q: str = Query(default="", description="Search terms"),
) -> dict[str, Any]:
    notes = await NoteService(db).search(user, q)
    return create_paginated_response(
        items=notes,
        item_schema=NoteListResponse,
        total=len(notes),
        limit=max(len(notes), 1),
        request_id=request_id,
    )


@router.get("/trash", summary="List the caller's trashed notes")
async def list_trash(
    db: DbSession,
    user: CurrentUser,
) -> ApiResponse[list[NoteListResponse]]:
    notes = await NoteService(db).list_trash(user)
    return ApiResponse(data=[NoteListResponse.model_validate(note) for note in notes])


@router.post(
    "/bulk-export",
    response_model=ApiResponse[BulkExportResponse],
    summary="Export the caller's notes as Markdown",
)
async def bulk_export(
    data: BulkExportRequest,
    db: DbSession,
    user: CurrentUser,
) -> ApiResponse[BulkExportResponse]:
    files = await NoteService(db).bulk_export(user, data.note_ids)
    return ApiResponse(
        data=BulkExportResponse(files=[ExportResponse.model_validate(f) for f in files])
    )


@router.get(
    "/{note_id}",
    response_model=ApiResponse[NoteResponse],
    summary="Get a note",
)
async def get_note(
    note_id: str,
    db: DbSession,
    user: CurrentUser,
) -> ApiResponse[NoteResponse]:
    note = await NoteService(db).get_note(note_id, user)
    return ApiResponse(data=NoteResponse.model_validate(note))


@router.patch(
    "/{note_id}",
    response_model=ApiResponse[NoteResponse],
    summary="Update a note",
    description="Partial update. Changing the body records a version of the previous content.",
)
async def update_note(
    note_id: str,
    data: NoteUpdate,
    db: DbSession,
    user: CurrentUser,
) -> ApiResponse[NoteResponse]:
    changes = data.model_dump(exclude_unset=True)
    note = await NoteService(db).update_note(note_id, user, changes)
    return ApiResponse(data=NoteResponse.model_validate(note))


@router.delete(
    "/{note_id}",
    response_model=ApiResponse[NoteDeleteResponse],
    summary="Trash or permanently delete a note",
    description="Moves a live note to the trash; deletes a trashed note for good. Owner only.",
)
async def delete_note(
    note_id: str,
    db: DbSession,
    user: CurrentUser,
    store: Store,
) -> ApiResponse[NoteDeleteResponse]:
    permanently, keys = await NoteService(db).delete_note(note_id, user)
    if permanently:
        await AttachmentService(db, store).commit_and_purge(keys)
    message = "Note permanently deleted" if permanently else "Note moved to trash"
    return ApiResponse(
        data=NoteDeleteResponse(id=note_id, permanently_deleted=permanently, message=message)
    )


@router.patch("/{note_id}/restore", response_model=ApiResponse[NoteResponse])
async def restore_note(note_id: str, db: DbSession, user: CurrentUser) -> ApiResponse[NoteResponse]:
    note = await NoteService(db).restore(note_id, user)
    return ApiResponse(data=NoteResponse.model_validate(note))


@router.patch("/{note_id}/archive", response_model=ApiResponse[NoteResponse])
async def archive_note(note_id: str, db: DbSession, user: CurrentUser) -> ApiResponse[NoteResponse]:
    note = await NoteService(db).archive(note_id, user)
    return ApiResponse(data=NoteResponse.model_validate(note))


@router.patch("/{note_id}/unarchive", response_model=ApiResponse[NoteResponse])
async def unarchive_note(note_id: str, db: DbSession, user: CurrentUser) -> ApiResponse[NoteResponse]:
    note = await NoteService(db).unarchive(note_id, user)
    return ApiResponse(data=NoteResponse.model_validate(note))


@router.patch("/{note_id}/toggle-pin", response_model=ApiResponse[NoteResponse])
async def toggle_pin(note_id: str, db: DbSession, user: CurrentUser) -> ApiResponse[NoteResponse]:
    note = await NoteService(db).toggle_pin(note_id, user)
    return ApiResponse(data=NoteResponse.model_validate(note))


@router.post(
    "/{note_id}/duplicate",
    response_model=ApiResponse[NoteResponse],
    status_code=201,
    summary="Copy a note into a new note owned by the caller",
)
async def duplicate_note(note_id: str, db: DbSession, user: CurrentUser) -> ApiResponse[NoteResponse]:
    note = await NoteService(db).duplicate(note_id, user)
    return ApiResponse(data=NoteResponse.model_validate(note))


@router.post(
    "/{note_id}/merge",
    response_model=ApiResponse[NoteResponse],
    summary="Merge another note into this one",
)
async def merge_note(
    note_id: str,
    data: NoteMerge,
    db: DbSession,
    user: CurrentUser,
) -> ApiResponse[NoteResponse]:
    note = await NoteService(db).merge(
        note_id,
        data.merge_with_id,
        user,
        trash_other=data.trash_merged,
    )
    return ApiResponse(data=NoteResponse.model_validate(note))


@router.get(
    "/{note_id}/export",
    response_model=ApiResponse[ExportResponse],
    summary="Export a note as Markdown",
)
async def export_note(note_id: str, db: DbSession, user: CurrentUser) -> ApiResponse[ExportResponse]:
    exported = await NoteService(db).export(note_id, user)
    return ApiResponse(data=ExportResponse.model_validate(exported))
