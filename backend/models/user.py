from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from .fields import Email, Password, Name, Text


class RegisterRequest(BaseModel):
    email: Email
    password: Password
    name: Name
    phone: Optional[Text] = None


class LoginRequest(BaseModel):
    email: Email
    password: str


class UserUpdateRequest(BaseModel):
    name: Optional[Name] = None
    email: Optional[Email] = None
    phone: Optional[Text] = None
    password: Optional[Password] = None


class UserOut(BaseModel):
    id: str
    email: str
    name: str
    phone: Optional[str] = None
    created_at: Optional[datetime] = None


class AuthResponse(BaseModel):
    user: UserOut
    token: str
