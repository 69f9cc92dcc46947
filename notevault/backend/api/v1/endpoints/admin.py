"""
Admin API Endpoints.

User management for admins. Gated by role and the admin_api_enabled flag.
"""

from typing import Any

from fastapi import APIRouter, Depends

from notevault.backend.core.dependencies import AdminUser, DbSession, RequestId, Store
from notevault.backend.core.pagination import (
    PaginationParams,
    create_paginated_response,
    get_pagination_params,
)
from notevault.backend.schemas.base import ApiResponse
from notevault.backend.schemas.user import AdminStats, UserAdminUpdate, UserResponse
from notevault.backend.services.attachment import AttachmentService
from notevault.backend.services.user import UserService

router = APIRouter()


@router.get("/stats", response_model=ApiResponse[AdminStats], summary="User and note totals")
async def stats(db: DbSession, admin: AdminUser) -> ApiResponse[AdminStats]:
    return ApiResponse(data=AdminStats(**await UserService(db).stats()))


@router.get("/users", summary="List users (paginated)")
async def list_users(
    db: DbSession,
    admin: AdminUser,
    request_id: RequestId,
    pagination: PaginationParams = Depends(get_pagination_params),
) -> dict[str, Any]:
    users, total = await UserService(db).list_users(limit=pagination.limit, offset=pagination.offset)
    return create_paginated_response(
        items=users,
        item_schema=UserResponse,
        total=total,
        limit=pagination.limit,
        offset=pagination.offset,
        request_id=request_id,
    )


@router.patch(
    "/users/{user_id}",
    response_model=ApiResponse[UserResponse],
    summary="Change a user's role or session timeout",
)
async def update_user(
    user_id: str,
    data: UserAdminUpdate,
    db: DbSession,
    admin: AdminUser,
) -> ApiResponse[UserResponse]:
    user = await UserService(db).update_user(user_id, data.model_dump(exclude_unset=True))
    return ApiResponse(data=UserResponse.model_validate(user))


@router.delete("/users/{user_id}", status_code=204, summary="Delete a user and their data")
async def delete_user(user_id: str, db: DbSession, admin: AdminUser, store: Store) -> None:
    keys = await UserService(db).delete_user(user_id, admin)
    await AttachmentService(db, store).commit_and_purge(keys)
