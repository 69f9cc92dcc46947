"""
Attachment API Endpoints.

Nested under /notes/{note_id}/attachments. Uploads are multipart with one
or more "files" parts; every file must be within the configured size limit.
"""

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import Response

from notevault.backend.core.dependencies import (
    CurrentUser,
    DbSession,
    Store,
    require_attachments_enabled,
)
from notevault.backend.schemas.attachment import AttachmentResponse
from notevault.backend.schemas.base import ApiResponse
from notevault.backend.services.attachment import AttachmentService, IncomingFile

router = APIRouter(dependencies=[Depends(require_attachments_enabled)])


@router.get("", summary="List a note's attachments")
async def list_attachments(
    note_id: str,
    db: DbSession,
    user: CurrentUser,
    store: Store,
) -> ApiResponse[list[AttachmentResponse]]:
    attachments = await AttachmentService(db, store).list_attachments(note_id, user)
    return ApiResponse(data=[AttachmentResponse.model_validate(a) for a in attachments])


@router.post("", status_code=201, summary="Attach files to a note")
async def upload_attachments(
    note_id: str,
    db: DbSession,
    user: CurrentUser,
    store: Store,
    files: list[UploadFile] = File(default=[]),
) -> ApiResponse[list[AttachmentResponse]]:
    incoming = [
        IncomingFile(
            filename=upload.filename or "file",
            content_type=upload.content_type,
            data=await upload.read(),
        )
        for upload in files
    ]
    attachments = await AttachmentService(db, store).attach(note_id, user, incoming)
    return ApiResponse(data=[AttachmentResponse.model_validate(a) for a in attachments])


@router.get("/{attachment_id}", summary="Download an attachment")
async def download_attachment(
    note_id: str,
    attachment_id: str,
    db: DbSession,
    user: CurrentUser,
    store: Store,
) -> Response:
    attachment, data = await AttachmentService(db, store).read(note_id, attachment_id, user)
    return Response(
        content=data,
        media_type=attachment.content_type,
        headers={"Content-Disposition": f'attachment; filename="{attachment.filename}"'},
    )


@router.delete("/{attachment_id}", status_code=204, summary="Remove an attachment")
async def delete_attachment(
    note_id: str,
    attachment_id: str,
    db: DbSession,
    user: CurrentUser,
    store: Store,
) -> None:
    service = AttachmentService(db, store)
    keys = await service.purge(note_id, attachment_id, user)
    await service.commit_and_purge(keys)
