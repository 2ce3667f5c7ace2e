"""One client connection paired with one capture process.

The session owns its capture process exclusively. Every way out of the relay
loop (EOF, read error, cancellation on client disconnect, generator close) ends
in `close()`, which kills the process and moves the session to CLOSED.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from uuid import uuid4

import anyio
from loguru import logger

from camrelay.domain.stream.capture import CaptureProcess, CaptureStartError
from camrelay.domain.stream.multipart import MultipartFramer
from camrelay.domain.stream.state_machine import StreamStateMachine
from camrelay.schemas import StreamState

DisconnectProbe = Callable[[], Awaitable[bool]]


class StreamSession:
    def __init__(
        self,
        capture: CaptureProcess,
        framer: MultipartFramer,
        *,
        is_disconnected: DisconnectProbe | None = None,
    ):
        self.session_id = uuid4().hex[:8]
        self.capture = capture
        self.framer = framer
        self.state = StreamState.IDLE
        self.close_reason: str | None = None
        self.parts_sent = 0
        self.bytes_sent = 0
        self._is_disconnected = is_disconnected
        self._first_chunk: bytes | None = None
        self._close_lock = asyncio.Lock()

    def _transition(self, new: StreamState) -> bool:
        if not StreamStateMachine.can_transition(self.state, new):
            logger.warning("[{}] Invalid stream transition {} -> {}", self.session_id, self.state, new)
            return False

        logger.debug("[{}] Stream state {} -> {}", self.session_id, self.state, new)
        self.state = new
        return True

    async def start(self) -> None:
        """Spawn the capture process and wait for its first chunk.

        Response headers are only committed after this returns, so every
        startup failure can still be reported with an error status.

        Raises:
            CaptureStartError: The process could not be spawned, exited before
                producing output, or produced nothing within `start_timeout`.
        """
        if not self._transition(StreamState.STARTING):
            raise RuntimeError(f"stream session {self.session_id} already started")

        timeout = self.capture.config.start_timeout
        try:
            await self.capture.start()
            first_chunk = await asyncio.wait_for(self.capture.read_chunk(), timeout=timeout)
        except CaptureStartError:
            await self._abort_start("spawn failed")
            raise
        except asyncio.TimeoutError as e:
            await self._abort_start("startup timeout")
            raise CaptureStartError(f"Capture process produced no output within {timeout}s") from e
        except asyncio.CancelledError:
            with anyio.CancelScope(shield=True):
                await self.close("client disconnected while starting")
            raise

        if not first_chunk:
            returncode = await self._abort_start("exited before output")
            raise CaptureStartError(
                f"Capture process exited before producing output (exit code {returncode})"
            )

        self._first_chunk = first_chunk
        self._transition(StreamState.STREAMING)
        logger.info("[{}] Streaming from capture pid={}", self.session_id, self.capture.pid)

    async def _abort_start(self, reason: str) -> int | None:
        async with self._close_lock:
            returncode = await self.capture.kill()
            self.close_reason = reason
            self._transition(StreamState.CLOSED)

        logger.warning(
            "[{}] Capture start failed ({}), exit code {}", self.session_id, reason, returncode
        )
        return returncode

    async def iter_parts(self) -> AsyncIterator[bytes]:
        """Framed parts in the order their chunks were read from the capture process."""
        if self.state != StreamState.STREAMING:
            raise RuntimeError(f"stream session {self.session_id} is {self.state}, not streaming")

        reason = "capture process exited"
        chunk, self._first_chunk = self._first_chunk, None
        try:
            while chunk:
                if self._is_disconnected is not None and await self._is_disconnected():
                    reason = "client disconnected"
                    break

                part = self.framer.frame(chunk)
                yield part
                self.parts_sent += 1
                self.bytes_sent += len(chunk)

                chunk = await self.capture.read_chunk()
        except (asyncio.CancelledError, GeneratorExit):
            reason = "client disconnected"
            raise
        except Exception as e:
            reason = "capture read failed"
            logger.exception("[{}] Reading capture output failed: {}", self.session_id, e)
        finally:
            with anyio.CancelScope(shield=True):
                await self.close(reason)

    async def close(self, reason: str = "closed") -> None:
        """Kill the capture process and finish the session. Idempotent."""
        async with self._close_lock:
            if StreamStateMachine.is_terminal(self.state):
                return

            if self.state == StreamState.IDLE:
                # never started, nothing to kill
                self.close_reason = reason
                return

            if self.state != StreamState.TERMINATING:
                self._transition(StreamState.TERMINATING)

            self.close_reason = reason
            returncode = await self.capture.kill()
            self._transition(StreamState.CLOSED)

        if returncode not in (None, 0) and reason == "capture process exited":
            logger.warning(
                "[{}] Capture process failed with exit code {} after {} parts",
                self.session_id, returncode, self.parts_sent,
            )
        else:
            logger.info(
                "[{}] Stream closed: {} (exit code {}, {} parts, {} bytes)",
                self.session_id, reason, returncode, self.parts_sent, self.bytes_sent,
            )
