"""
Authentication API Endpoints.

Token issue and refresh. These are the only /api/v1 routes that do not
require a bearer token up front.
"""

from fastapi import APIRouter

from notevault.backend.core.dependencies import BearerToken, DbSession
from notevault.backend.schemas.auth import TokenRequest, TokenResponse
from notevault.backend.schemas.base import ApiResponse
from notevault.backend.services.auth import AuthService

router = APIRouter()


@router.post(
    "/token",
    response_model=ApiResponse[TokenResponse],
    summary="Exchange credentials for an API token",
    description="Send email with either password or the uid of a federated identity.",
)
async def create_token(data: TokenRequest, db: DbSession) -> ApiResponse[TokenResponse]:
    service = AuthService(db)
    if data.password:
        user = await service.authenticate_password(data.email, data.password)
    else:
        user = await service.authenticate_federated(data.email, data.uid or "")
    issued = await service.issue_token(user)
    return ApiResponse(data=TokenResponse(token=issued.token, expires_at=issued.expires_at))


@router.post(
    "/refresh",
    response_model=ApiResponse[TokenResponse],
    summary="Extend the current token, or replace it if it has expired",
)
async def refresh_token(db: DbSession, token: BearerToken) -> ApiResponse[TokenResponse]:
    issued = await AuthService(db).refresh_token(token)
    return ApiResponse(data=TokenResponse(token=issued.token, expires_at=issued.expires_at))
