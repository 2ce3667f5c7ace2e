"""Common enums used across schemas."""

from enum import Enum


class StreamState(str, Enum):
    """Stream session lifecycle states.

    State Transition Flow:

    IDLE → STARTING → STREAMING → TERMINATING → CLOSED
              ↓
            CLOSED (spawn failure) | TERMINATING (client gone while starting)

    State Descriptions:
    - IDLE: Session created, capture process not spawned yet.
    - STARTING: Capture process spawned, waiting for its first chunk.
    - STREAMING: First chunk read; parts are being relayed to the client.
    - TERMINATING: Client disconnected or capture process exited/failed; kill in progress.
    - CLOSED: Capture process reaped and the response finished.

    Terminal states (no further transitions): CLOSED
    """

    IDLE = "idle"
    STARTING = "starting"
    STREAMING = "streaming"
    TERMINATING = "terminating"
    CLOSED = "closed"

    def __str__(self) -> str:
        return self.value


__all__ = ["StreamState"]
