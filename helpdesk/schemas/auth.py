from typing import Optional
from pydantic import EmailStr
from sqlmodel import SQLModel, Field
from .users import UserRead

class RegisterRequest(SQLModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: Optional[str] = None

class LoginRequest(SQLModel):
    email: str
    password: str

class TokenResponse(SQLModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead

class RegisterResponse(SQLModel):
    message: str
    user: UserRead
