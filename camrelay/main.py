import sys
import time
import traceback
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from granian import Granian
from loguru import logger
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from camrelay.api.errors import app_error_handler
from camrelay.app_config import get_app_environ_config
from camrelay.domain.auth.credentials import CredentialStore
from camrelay.domain.auth.tokens import TokenService
from camrelay.shared.api.errors import E_INTERNAL
from camrelay.shared.api.utils import api_failure, init_logger, load_routes, validation_exception_handler
from camrelay.shared.storage.redis import get_redis_manager
from camrelay.utils.app_errors import AppError, ConfigurationError


class HTTPLoggingMiddleware:
    """Logs each request with a short id, its status and duration.

    Plain ASGI rather than BaseHTTPMiddleware so long-lived streaming bodies
    and client disconnects pass through untouched.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        start_time = time.time()
        request_id = str(uuid.uuid4())[:8]
        method = scope["method"]
        path = scope["path"]
        status_code: int | None = None

        logger.info(f"[{request_id}] {method} {path}")

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            process_time = (time.time() - start_time) * 1000

            logger.error(
                f"[{request_id}] Unhandled exception in {method} {path} - "
                f"Duration: {process_time:.2f}ms - "
                f"Error: {type(exc).__name__}: {exc}\n"
                f"Traceback:\n{traceback.format_exc()}"
            )

            if status_code is not None:
                # headers already sent, nothing left to report to the client
                raise

            failure = api_failure(
                errcode=E_INTERNAL,
                message=f"Internal server error (request_id: {request_id})",
            )
            response = ORJSONResponse(status_code=500, content=failure.model_dump())
            await response(scope, receive, send)
            return

        process_time = (time.time() - start_time) * 1000
        logger.info(
            f"[{request_id}] {method} {path} - "
            f"Status: {status_code} - "
            f"Duration: {process_time:.2f}ms"
        )


@asynccontextmanager
async def lifespan(server: FastAPI):
    init_logger()

    logger.info("Application startup...")

    env_config = get_app_environ_config()
    try:
        env_config.validate_startup()
    except ConfigurationError as e:
        logger.critical("Refusing to start: {}", e)
        raise

    server.state.capture_config = env_config.capture_config()
    server.state.stream_config = env_config.stream_config()
    server.state.token_service = TokenService(
        env_config.jwt_secret(),
        expire_seconds=env_config.TOKEN_EXPIRE_SECONDS,
    )
    server.state.redis_manager = get_redis_manager()

    logger.info("Capture command: {}", server.state.capture_config.argv)

    seed_users = env_config.seed_users()
    if seed_users:
        store = CredentialStore(
            server.state.redis_manager.get_cache_client(),
            key_prefix=env_config.CREDENTIAL_KEY_PREFIX,
        )
        try:
            await store.seed_users(seed_users)
        except Exception as e:
            logger.error("Error seeding users: {}", e)

    load_routes(server)

    yield

    logger.info("Application shutdown...")

    await server.state.redis_manager.close()


app = FastAPI(
    version="1.0",
    title="Camera Stream Relay",
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

app.add_middleware(HTTPLoggingMiddleware)

app.add_middleware(
    CORSMiddleware,  # type: ignore
    allow_origins=get_app_environ_config().API_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore
app.add_exception_handler(AppError, app_error_handler)  # type: ignore


def build_granian_kwargs():
    env_config = get_app_environ_config()

    kwargs = {
        "interface": "asgi",
        "address": env_config.API_HOST,
        "port": env_config.API_PORT,
        "workers": env_config.API_WORKERS,
        "reload": env_config.DEBUG,
    }

    return kwargs


def run():
    try:
        get_app_environ_config().validate_startup()
    except ConfigurationError as e:
        init_logger()
        logger.critical("Refusing to start: {}", e)
        sys.exit(1)

    granian_kwargs = build_granian_kwargs()
    logger.info(
        "Server running on http://{}:{} (login page at /login)",
        granian_kwargs["address"], granian_kwargs["port"],
    )
    Granian("camrelay.main:app", **granian_kwargs).serve()


if __name__ == "__main__":
    run()
