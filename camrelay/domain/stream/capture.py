"""External capture process (ffmpeg by default) writing encoded frames to stdout."""

from __future__ import annotations

import asyncio
from asyncio import subprocess
from collections.abc import Awaitable, Callable
from typing import Any

from loguru import logger

from camrelay.app_config import CaptureConfig

# Time allowed for the stderr drain to flush after the process exits
STDERR_DRAIN_GRACE_SECONDS = 0.5

SpawnFunc = Callable[..., Awaitable[Any]]


class CaptureStartError(Exception):
    """The capture process could not be launched or produced no output."""


class CaptureProcess:
    """Owns exactly one capture subprocess.

    The subprocess is spawned by `start()` and only ever stopped with SIGKILL by
    `kill()`; there is no graceful shutdown path since the capture runs until
    killed.
    """

    def __init__(self, config: CaptureConfig, spawn: SpawnFunc | None = None):
        self.config = config
        self._spawn = spawn or asyncio.create_subprocess_exec
        self._process: Any = None
        self._stderr_task: asyncio.Task | None = None

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    @property
    def returncode(self) -> int | None:
        return self._process.returncode if self._process is not None else None

    @property
    def started(self) -> bool:
        return self._process is not None

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def start(self) -> None:
        """Spawn the capture subprocess.

        Raises:
            CaptureStartError: If the executable cannot be launched.
            RuntimeError: If this instance was already started.
        """
        if self._process is not None:
            raise RuntimeError("capture process already started")

        argv = self.config.argv
        try:
            self._process = await self._spawn(
                *argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            logger.error("Failed to start capture process {}: {}", argv[0], e)
            raise CaptureStartError(f"Failed to start capture process '{argv[0]}': {e}") from e

        logger.info("Capture process started pid={} argv={}", self._process.pid, argv)

        if self._process.stderr is not None:
            self._stderr_task = asyncio.create_task(self._drain_stderr(self._process))

    async def _drain_stderr(self, process: Any) -> None:
        while True:
            try:
                line = await process.stderr.readline()
            except ValueError:
                # Over the reader limit (ffmpeg progress output uses \r); the
                # reader drops the oversized data and stays usable.
                logger.warning("Capture stderr pid={}: line too long, skipped", process.pid)
                continue
            if not line:
                break
            for text in line.decode("utf-8", errors="replace").split("\r"):
                if text.strip():
                    logger.warning("Capture stderr pid={}: {}", process.pid, text.rstrip())

    async def read_chunk(self) -> bytes:
        """Next chunk of stdout, up to `read_size` bytes; b'' at EOF."""
        if self._process is None:
            raise RuntimeError("capture process not started")
        return await self._process.stdout.read(self.config.read_size)

    async def kill(self) -> int | None:
        """SIGKILL the subprocess if it is still running and reap it.

        Safe to call any number of times, and before `start()`.

        Returns:
            The exit code, or None if the process was never started or did not
            exit within `kill_timeout`.
        """
        process = self._process
        if process is None:
            return None

        if process.returncode is None:
            try:
                process.kill()
                logger.info("Sent SIGKILL to capture process pid={}", process.pid)
            except ProcessLookupError:
                pass

        try:
            await asyncio.wait_for(process.wait(), timeout=self.config.kill_timeout)
        except asyncio.TimeoutError:
            logger.error(
                "Capture process pid={} still running {}s after SIGKILL",
                process.pid,
                self.config.kill_timeout,
            )

        await self._stop_stderr_drain()
        return process.returncode

    async def _stop_stderr_drain(self) -> None:
        task = self._stderr_task
        if task is None or task.done():
            return

        _, pending = await asyncio.wait({task}, timeout=STDERR_DRAIN_GRACE_SECONDS)
        if pending:
            task.cancel()
