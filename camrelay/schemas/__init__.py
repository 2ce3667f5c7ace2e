from .stream_state import StreamState
from .user import User

__all__ = ["StreamState", "User"]
