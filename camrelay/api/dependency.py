from typing import Annotated

from fastapi import Depends, Request
from loguru import logger

from camrelay.app_config import CaptureConfig, StreamConfig, get_app_environ_config
from camrelay.domain.auth.credentials import CredentialStore
from camrelay.domain.auth.tokens import TokenService
from camrelay.schemas import User
from camrelay.shared.api.utils import get_redis_major_client
from camrelay.utils.app_errors import AppError, AppErrorCode, HttpStatusCode


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_capture_config(request: Request) -> CaptureConfig:
    return request.app.state.capture_config


def get_stream_config(request: Request) -> StreamConfig:
    return request.app.state.stream_config


def get_credential_store(request: Request) -> CredentialStore:
    return CredentialStore(
        get_redis_major_client(request),
        key_prefix=get_app_environ_config().CREDENTIAL_KEY_PREFIX,
    )


def bearer_token(request: Request) -> str | None:
    """Token from `Authorization: Bearer <token>`; None when absent.

    Raises:
        AppError: E_TOKEN_INVALID when the header uses another scheme.
    """
    # Do not log request headers here (Authorization carries the secret).
    header = request.headers.get("authorization")
    if not header or not header.strip():
        return None

    scheme, _, token = header.strip().partition(" ")
    if scheme.lower() != "bearer":
        raise AppError(
            errcode=AppErrorCode.E_TOKEN_INVALID,
            errmesg="Forbidden: Unsupported authorization scheme.",
            status_code=HttpStatusCode.FORBIDDEN,
        )

    return token.strip() or None


async def get_current_user(
    request: Request,
    token_service: TokenService = Depends(get_token_service),
) -> User:
    user = token_service.verify_token(bearer_token(request))
    logger.debug("Authenticated user: {}", user.username)
    return user


async def get_stream_user(
    request: Request,
    token_service: TokenService = Depends(get_token_service),
    stream_config: StreamConfig = Depends(get_stream_config),
) -> User | None:
    """Identity for the raw stream endpoint.

    `<img>` requests cannot carry an Authorization header, so the token is
    also accepted as the `token` query parameter. With STREAM_REQUIRE_AUTH
    disabled the endpoint is open and no identity is resolved.
    """
    if not stream_config.require_auth:
        return None

    token = bearer_token(request) or request.query_params.get("token")
    return token_service.verify_token(token)


CurrentUser = Annotated[User, Depends(get_current_user)]
StreamUser = Annotated[User | None, Depends(get_stream_user)]
