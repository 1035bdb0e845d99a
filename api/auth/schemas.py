"""
Auth API schemas (request/response models).
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    username: str = Field(default="", max_length=100)
    email: str = Field(default="", max_length=320)
    password: str = Field(default="", max_length=128)
    role: str = "user"


class LoginRequest(BaseModel):
    # Either an email or a seed alias such as "admin".
    username: str = Field(default="", max_length=320)
    password: str = Field(default="", max_length=128)

