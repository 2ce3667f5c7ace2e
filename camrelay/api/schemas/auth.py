from pydantic import BaseModel, Field

from camrelay.shared.api.utils import ApiResponse


class LoginIn(BaseModel):
    username: str = Field(..., description="Username to authenticate")
    password: str = Field(..., description="Password for the user")


class LoginOut(ApiResponse):
    success: bool = True
    token: str
    message: str = "Login successful!"
