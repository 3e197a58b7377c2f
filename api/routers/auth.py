"""
Auth Router - Static operator login.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from halaqah.auth import check_credentials

from ..schemas.auth import LoginRequest, LoginResponse
from ..settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest) -> LoginResponse:
    """Check the operator's username and password."""
    settings = get_settings()
    if not check_credentials(
        request.username, request.password, settings.operator_username, settings.operator_password
    ):
        logger.warning(f"Failed login for '{request.username}'")
        raise HTTPException(status_code=401, detail="Invalid username or password")

    logger.info(f"Operator '{request.username}' logged in")
    return LoginResponse(success=True, username=request.username)
