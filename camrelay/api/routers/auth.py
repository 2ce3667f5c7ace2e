"""Credential exchange for bearer tokens."""

from fastapi import APIRouter, Depends
from loguru import logger

from camrelay.api.dependency import get_credential_store, get_token_service
from camrelay.api.schemas.auth import LoginIn, LoginOut
from camrelay.domain.auth.credentials import CredentialStore
from camrelay.domain.auth.tokens import TokenService
from camrelay.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

router = APIRouter(tags=["Auth"])


@router.post("/login")
async def login(
    body: LoginIn,
    credential_store: CredentialStore = Depends(get_credential_store),
    token_service: TokenService = Depends(get_token_service),
) -> LoginOut:
    """Exchange username/password for a bearer token.

    Raises:
        401: Unknown user or wrong password
    """
    user = await credential_store.authenticate(body.username, body.password)
    if user is None:
        raise AppError(
            errcode=AppErrorCode.E_BAD_CREDENTIALS,
            errmesg="Invalid username or password",
            status_code=HttpStatusCode.UNAUTHORIZED,
        )

    logger.info("User {} logged in", user.username)
    return LoginOut(token=token_service.issue_token(user))
