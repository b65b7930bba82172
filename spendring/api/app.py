"""
HTTP API

A single privileged endpoint: DELETE /api/user removes an owner's data and
credential record. Everything else the app does runs client-side against
the storage backend.
"""

from typing import Any, Optional

import structlog
from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

import spendring
from spendring.accounts import AccountDeletionError, AccountDeletionService
from spendring.config import ApiSettings, get_settings

logger = structlog.get_logger(__name__)

security = HTTPBearer(auto_error=False)


def require_admin(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> None:
    """Check the bearer token when an admin token is configured."""
    expected = request.app.state.settings.admin_token
    if not expected:
        return

    if credentials is None or credentials.credentials != expected:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def _read_user_id(request: Request) -> Optional[str]:
    try:
        payload: Any = await request.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None

    user_id = payload.get("userId")
    if not isinstance(user_id, str) or not user_id.strip():
        return None
    return user_id.strip()


def create_app(
    deletion_service: Optional[AccountDeletionService] = None,
    settings: Optional[ApiSettings] = None,
) -> FastAPI:
    settings = settings or get_settings().api

    app = FastAPI(title="SpendRing API", version=spendring.__version__)
    app.state.settings = settings
    app.state.deletion_service = deletion_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.delete("/api/user", dependencies=[Depends(require_admin)])
    async def delete_user(request: Request) -> JSONResponse:
        user_id = await _read_user_id(request)
        if user_id is None:
            return JSONResponse(status_code=400, content={"error": "User ID is required"})

        service: Optional[AccountDeletionService] = request.app.state.deletion_service
        if service is None:
            logger.error("account_deletion_unconfigured")
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Server configuration error: Missing storage credentials",
                    "details": "Account storage is not configured",
                },
            )

        try:
            result = await service.delete_account(user_id)
        except AccountDeletionError as e:
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Failed to delete user account",
                    "details": str(e),
                    "code": e.code,
                },
            )
        except Exception as e:
            logger.exception("account_deletion_crashed", owner_id=user_id)
            return JSONResponse(
                status_code=500,
                content={"error": "Failed to delete user", "details": str(e)},
            )

        return JSONResponse(
            status_code=200,
            content={
                "success": True,
                "message": "User account and all data deleted successfully",
                "cleanup": result.summary(),
            },
        )

    return app
