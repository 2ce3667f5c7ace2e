"""Signed, time-limited bearer tokens (JWT, HS256 by default)."""

from __future__ import annotations

from time import time

import jwt
from loguru import logger

from camrelay.schemas import User
from camrelay.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

DEFAULT_TOKEN_EXPIRE_SECONDS = 3600


class TokenService:
    def __init__(
        self,
        secret: str,
        expire_seconds: int = DEFAULT_TOKEN_EXPIRE_SECONDS,
        algorithm: str = "HS256",
    ):
        if not secret:
            raise ValueError("token secret must not be empty")
        self._secret = secret
        self.expire_seconds = expire_seconds
        self.algorithm = algorithm

    def issue_token(self, user: User, now: float | None = None) -> str:
        """Sign a token for `user`, valid for `expire_seconds` from `now`."""
        issued_at = int(time() if now is None else now)
        payload = {
            "id": user.user_id,
            "username": user.username,
            "iat": issued_at,
            "exp": issued_at + self.expire_seconds,
        }
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify_token(self, token: str | None) -> User:
        """Decode a bearer token into the identity it was issued for.

        Raises:
            AppError: E_TOKEN_MISSING (401) when no token was presented,
                E_TOKEN_EXPIRED (403) once past its expiry, E_TOKEN_INVALID (403)
                for bad signatures, malformed tokens or missing claims.
        """
        if not token:
            raise AppError(
                errcode=AppErrorCode.E_TOKEN_MISSING,
                errmesg="Unauthorized: No token provided.",
                status_code=HttpStatusCode.UNAUTHORIZED,
            )

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Rejected expired token")
            raise AppError(
                errcode=AppErrorCode.E_TOKEN_EXPIRED,
                errmesg="Forbidden: Token expired.",
                status_code=HttpStatusCode.FORBIDDEN,
            ) from None
        except jwt.InvalidTokenError as e:
            logger.debug("Rejected invalid token: {}", e)
            raise AppError(
                errcode=AppErrorCode.E_TOKEN_INVALID,
                errmesg="Forbidden: Invalid token.",
                status_code=HttpStatusCode.FORBIDDEN,
            ) from None

        user_id = payload.get("id")
        username = payload.get("username")
        if not isinstance(user_id, str) or not isinstance(username, str) or not user_id or not username:
            raise AppError(
                errcode=AppErrorCode.E_TOKEN_INVALID,
                errmesg="Forbidden: Invalid token.",
                status_code=HttpStatusCode.FORBIDDEN,
            )

        return User(user_id=user_id, username=username)
