from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str
    password: str
    next: str | None = None


class SignupRequest(BaseModel):
    email: str
    password: str = Field(min_length=8)
    name: str | None = None


class PasswordResetRequest(BaseModel):
    email: str
