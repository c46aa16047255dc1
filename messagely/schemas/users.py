from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class RegisterIn(BaseModel):
    username: str = Field(min_length=1, max_length=150)
    password: str = Field(min_length=1)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    phone: str = Field(min_length=1)

    @field_validator('password')
    @classmethod
    def password_without_nul(cls, v: str) -> str:
        # bcrypt cannot hash NUL bytes
        if '\x00' in v:
            raise ValueError('must not contain NUL characters')
        return v


class LoginIn(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class TokenOut(BaseModel):
    token: str


class UserSummaryOut(BaseModel):
    """Counterparty projection: what other users may see of a user."""
    username: str
    first_name: str
    last_name: str
    phone: str


class UserDetailOut(UserSummaryOut):
    join_at: datetime
    last_login_at: Optional[datetime]


class UserListOut(BaseModel):
    users: List[UserSummaryOut]


class UserDetailEnvelope(BaseModel):
    user: UserDetailOut
