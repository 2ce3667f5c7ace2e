from fastapi import Request
from fastapi.responses import JSONResponse
from loguru import logger

from camrelay.shared.api.utils import ApiFailure, make_response
from camrelay.utils.app_errors import AppError


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """
    Custom exception handler for AppError.
    Converts AppError to ApiFailure and returns via make_response.
    """
    # Log with the caller info captured when AppError was raised
    log_msg = (
        f"{exc.errcode} {exc.erresid} {request.method} {request.url.path} "
        f"msg={exc.errmesg} caller={exc.caller_info}"
    )
    if exc.status_code >= 500:
        logger.error(log_msg)
    else:
        logger.warning(log_msg)

    failure = ApiFailure(errcode=exc.errcode, message=exc.errmesg, erresid=exc.erresid)
    return make_response(failure, status_code=exc.status_code)
