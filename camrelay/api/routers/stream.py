"""Raw MJPEG stream relayed from a per-connection capture process."""

from fastapi import APIRouter, Depends, Request
from loguru import logger

from camrelay.api.dependency import StreamUser, get_capture_config, get_stream_config
from camrelay.app_config import CaptureConfig, StreamConfig
from camrelay.domain.stream.capture import CaptureProcess, CaptureStartError
from camrelay.domain.stream.multipart import MultipartFramer
from camrelay.domain.stream.response import MultipartStreamResponse
from camrelay.domain.stream.session import StreamSession
from camrelay.utils.app_errors import AppError, AppErrorCode, HttpStatusCode

router = APIRouter(tags=["Stream"])


@router.get("/stream")
async def stream(
    request: Request,
    user: StreamUser,
    capture_config: CaptureConfig = Depends(get_capture_config),
    stream_config: StreamConfig = Depends(get_stream_config),
) -> MultipartStreamResponse:
    """Relay the capture process output as multipart/x-mixed-replace.

    Each connection gets its own capture process, killed when the client
    disconnects or the response ends for any other reason.

    The status line and headers are only sent once the capture produced its
    first chunk, so the client may wait up to CAPTURE_START_TIMEOUT before
    seeing a response. In exchange a start failure is still reported as a
    500 error envelope instead of a broken 200 stream.

    Raises:
        500: Capture process could not be started
    """
    session = StreamSession(
        CaptureProcess(capture_config),
        MultipartFramer(stream_config.boundary),
        is_disconnected=request.is_disconnected,
    )
    logger.info(
        "[{}] Client {} opened stream", session.session_id, user.username if user else "anonymous"
    )

    try:
        await session.start()
    except CaptureStartError as e:
        raise AppError(
            errcode=AppErrorCode.E_CAPTURE_START_FAILED,
            errmesg=f"Failed to start webcam stream: {e}",
            status_code=HttpStatusCode.INTERNAL_SERVER_ERROR,
        ) from e

    return MultipartStreamResponse(session)
