from .capture import CaptureProcess, CaptureStartError
from .multipart import MultipartFramer
from .response import MultipartStreamResponse
from .session import StreamSession

__all__ = [
    "CaptureProcess",
    "CaptureStartError",
    "MultipartFramer",
    "MultipartStreamResponse",
    "StreamSession",
]
