import uuid
from pydantic import BaseModel


class SignInRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class SessionUser(BaseModel):
    email: str
    role: str
    name: str


class SignInResponse(BaseModel):
    success: bool = True
    message: str = "Login successful"
    user: SessionUser


class SignOutResponse(BaseModel):
    success: bool = True
    message: str = "Logged out"


class AdminRead(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    email: str
    full_name: str | None
    role: str
