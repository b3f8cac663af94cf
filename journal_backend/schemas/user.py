"""
journal_backend/schemas/user.py

Defines the Pydantic schemas for user creation, update, read and login.
Clients send a raw 'password'; hashing happens in the service layer and the
hash is never part of any read schema.
"""

from pydantic import BaseModel, field_validator
from typing import List, Optional

from journal_backend.constants import Role


class UserBase(BaseModel):
    """
    Shared user fields. 'username' is the primary unique identifier.
    """
    username: str

    @field_validator("username")
    def username_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("username must not be blank")
        return v.strip()


class UserCreate(UserBase):
    """
    For registering a new user. The raw 'password' is hashed by the service
    layer before storing.
    """
    password: str
    email: Optional[str] = None

    @field_validator("password")
    def password_not_empty(cls, v):
        if not v:
            raise ValueError("password must not be empty")
        return v


class UserUpdate(BaseModel):
    """
    Fields for updating the caller's own record. All optional.
    If 'password' is provided, it will be hashed before saving.
    """
    username: Optional[str] = None
    password: Optional[str] = None
    email: Optional[str] = None


class UserRead(UserBase):
    """
    Schema for returning user data to clients.
    Includes the DB 'id' and role set but excludes the hashed password.
    """
    id: int
    roles: List[Role]
    email: Optional[str] = None

    @field_validator("roles", mode="before")
    def roles_sorted(cls, v):
        return sorted(Role(r) for r in v)

    class Config:
        from_attributes = True


class LoginRequest(BaseModel):
    """
    Schema for login JSON:
      { "username": "someName", "password": "somePass" }
    """
    username: str
    password: str


class TokenRead(BaseModel):
    access_token: str
    token_type: str = "bearer"
