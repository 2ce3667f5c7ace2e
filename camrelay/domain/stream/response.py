"""Streaming response bound to a single stream session."""

from __future__ import annotations

import anyio
from starlette.responses import StreamingResponse
from starlette.types import Receive, Scope, Send

from camrelay.domain.stream.multipart import STREAM_HEADERS
from camrelay.domain.stream.session import StreamSession


class MultipartStreamResponse(StreamingResponse):
    """multipart/x-mixed-replace response that releases its capture process.

    Starlette cancels the body iterator when the client sends http.disconnect
    and raises when a send fails; either way the ASGI call unwinds through the
    `finally` below, so the capture process is killed on every exit path.
    """

    def __init__(self, session: StreamSession, headers: dict[str, str] | None = None):
        super().__init__(
            session.iter_parts(),
            status_code=200,
            headers={**STREAM_HEADERS, **(headers or {})},
            media_type=session.framer.media_type,
        )
        self.session = session

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            with anyio.CancelScope(shield=True):
                aclose = getattr(self.body_iterator, "aclose", None)
                if aclose is not None:
                    await aclose()
                await self.session.close("response finished")
