import inspect
from typing import Any, Literal
from pydantic import BaseModel, Field
from os import environ
from uuid import uuid4
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse
from functools import lru_cache
from pathlib import Path
from importlib import import_module
from loguru import logger
from redis.asyncio import Redis


from .errors import E_INTERNAL, E_INVALID_PARAMS


SERVICE_NAME = 'camrelay'


def format_error(ex: BaseException) -> str:
    from traceback import TracebackException
    return ''.join(TracebackException.from_exception(ex).format())


class ApiResponse(BaseModel):
    version: str | None = Field(default_factory=lambda: environ.get('BUILD_COMMIT', 'dev'))


class ApiSuccess(ApiResponse):
    success: Literal[True] = True
    results: Any = "OK"


class ApiFailure(ApiResponse):
    success: Literal[False] = False
    errcode: str = E_INTERNAL
    erresid: str = Field(default_factory=lambda: uuid4().hex[:10])
    message: str = 'We are sorry, an error occurred.'


def api_failure(errcode: str = None, message: Exception | str = None, *, trace: Any = None) -> ApiFailure:
    if not errcode:
        errcode = ApiFailure.model_fields['errcode'].default

    if isinstance(message, Exception):
        message = format_error(message)

    if not message:
        message = ApiFailure.model_fields['message'].default

    failure = ApiFailure(errcode=errcode, message=message)

    caller_frame = inspect.stack()[1]
    module = inspect.getmodule(caller_frame.frame)
    module_name = module.__name__ if module and getattr(module, "__name__", None) else caller_frame.filename
    caller_info = f"{module_name}:{caller_frame.function}:{caller_frame.lineno}"

    logger.warning(
        f'{failure.errcode} {failure.erresid}\n{failure.message} '
        f'caller={caller_info} trace={trace}'
    )

    return failure


def is_error(results: ApiFailure | dict) -> tuple[bool, bool]:
    if isinstance(results, ApiFailure):
        return True, results.errcode == E_INTERNAL

    if isinstance(results, dict) and 'errcode' in results:
        return True, results['errcode'] == E_INTERNAL

    return False, False


def make_response(results, *, status_code: int = None) -> ORJSONResponse:
    if isinstance(results, Exception):
        results = api_failure(message=results)
        if status_code is None:
            status_code = 500
    else:
        failed, internal = is_error(results)
        if status_code is None:
            if failed:
                status_code = 500 if internal else 400
            else:
                status_code = 200

    return ORJSONResponse(
        status_code=status_code,
        content=results.model_dump() if hasattr(results, 'model_dump') else results
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()

    logger.warning(
        "Validation error: path={} method={} errors={}",
        request.url.path, request.method, errors
    )

    failure = api_failure(E_INVALID_PARAMS, message=str(errors))

    return ORJSONResponse(status_code=422, content=failure.model_dump())


def load_routes(app: FastAPI, prefix: str = ''):
    package_root = Path(__file__).parent.parent.parent
    for folder in [package_root / 'shared' / 'api', package_root / 'api' / 'routers']:
        load_routes_in_folder(app, prefix, folder)

    for route_info in get_all_routes_info(app):
        methods = ','.join(sorted(route_info['methods']))
        logger.info('Loaded route: {:<12} {:<40} {}', methods, route_info['path'], route_info['endpoint'])


def load_routes_in_folder(app: FastAPI, prefix: str, folder: Path):
    from ..config import config
    disabled_routes = [x.strip() for x in config.get('API_DISABLED', '').split(',') if x.strip()]
    logger.debug('disabled routes: {}', disabled_routes)

    package_root = Path(__file__).parent.parent.parent

    for x in sorted(folder.glob('*.py')):
        if x.name == '__init__.py':
            continue

        relative_path = x.relative_to(package_root.parent)
        name = '.'.join(relative_path.with_suffix('').parts)

        if any(name.endswith(f'.{disabled_route}') for disabled_route in disabled_routes):
            logger.warning('disabled route module {}', name)
            continue

        try:
            module = import_module(name)
        except ImportError as e:
            logger.warning('Failed to import {}: {}', name, e)
            continue

        if hasattr(module, "router"):
            app.include_router(module.router, prefix=prefix)
            logger.info('Added routes in {}', name)


def get_all_routes_info(app: FastAPI):
    routes_info = []

    for route in app.routes:
        if hasattr(route, 'methods'):
            endpoint_name = route.endpoint.__name__ if hasattr(route.endpoint, '__name__') else str(route.endpoint)
            routes_info.append(
                {
                    "methods": sorted(route.methods),
                    "path": route.path,
                    "name": route.name,
                    "endpoint": endpoint_name,
                }
            )

    return routes_info


@lru_cache
def get_worker_info():
    worker_name = environ.get('WORKER_NAME', SERVICE_NAME)

    parts = environ.get('BUILD_COMMIT', '').split('-')
    commit_id = parts[1] if len(parts) > 1 else 'dev'

    return worker_name, commit_id, uuid4().hex[:8]


def init_logger():
    import sys
    from ..config import config

    logger.remove()

    worker_name, commit_id, _ = get_worker_info()

    if config.get_bool('DEBUG'):
        logger_level = 'DEBUG'
        logger_format = (
            f'<yellow>{worker_name}:{commit_id}</yellow> | '
            '<green>{time:MM-DD HH:mm:ss.SSS}</green> | '
            '<level>{level: <8}</level> | '
            '<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | '
            '<level>{message}</level>'
        )
    else:
        logger_level = 'INFO'
        logger_format = (
            f'{worker_name}:{commit_id} | '
            '{time:MM-DD HH:mm:ss.SSS} | '
            '{level: <8} | '
            '{name}:{function}:{line} | '
            '{message}'
        )
    logger.add(sys.stderr, level=logger_level, format=logger_format)


def get_redis_major_client(request: Request) -> Redis:
    return request.app.state.redis_manager.get_cache_client()
