"""Stream session state machine for managing state transitions."""

from camrelay.schemas import StreamState


class StreamStateMachine:
    """State machine for a single stream session.

    State flow with triggers:
    - IDLE -> STARTING (stream request received, capture spawn initiated)
    - STARTING -> STREAMING (first chunk read from the capture process)
    - STARTING -> CLOSED (spawn failure, exit before first chunk, startup timeout)
    - STARTING -> TERMINATING (client disconnected while waiting for the first chunk)
    - STREAMING -> TERMINATING (client disconnect, capture exit, capture error)
    - TERMINATING -> CLOSED (capture process killed/reaped)
    - CLOSED is terminal
    """

    TRANSITIONS: dict[StreamState, set[StreamState]] = {
        StreamState.IDLE: {StreamState.STARTING},
        StreamState.STARTING: {
            StreamState.STREAMING,
            StreamState.TERMINATING,
            StreamState.CLOSED,
        },
        StreamState.STREAMING: {StreamState.TERMINATING},
        StreamState.TERMINATING: {StreamState.CLOSED},
        StreamState.CLOSED: set(),
    }

    TERMINAL_STATES: set[StreamState] = {StreamState.CLOSED}

    @classmethod
    def can_transition(cls, current: StreamState, new: StreamState) -> bool:
        """Check if state transition is valid.

        Args:
            current: Current stream state
            new: Target state to transition to

        Returns:
            True if transition is valid, False otherwise
        """
        return new in cls.TRANSITIONS.get(current, set())

    @classmethod
    def is_terminal(cls, state: StreamState) -> bool:
        return state in cls.TERMINAL_STATES

    @classmethod
    def get_valid_transitions(cls, state: StreamState) -> set[StreamState]:
        return cls.TRANSITIONS.get(state, set())
