from pydantic import BaseModel


class User(BaseModel):
    """Authenticated identity carried in bearer tokens."""

    user_id: str
    username: str
