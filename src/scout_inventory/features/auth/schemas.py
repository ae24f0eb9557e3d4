"""Pydantic schemas for authentication and profiles."""

from pydantic import BaseModel, Field, EmailStr
from typing import Optional
import datetime

from ...common.domains import Role
from ...common.schemas import CanonicalModel


class ProfileBase(CanonicalModel):
    email: EmailStr = Field(..., description="User email address")
    full_name: str = Field(..., min_length=1, max_length=255, description="Display name")


class ProfileCreate(ProfileBase):
    """What the backends persist for a new profile."""

    hashed_password: str
    role: Role = Role.OPERATOR
    is_active: bool = True


class UserRegister(ProfileBase):
    password: str = Field(..., min_length=8, description="User password")


class Profile(ProfileBase):
    user_id: str = Field(..., description="Identity id (KSUID) the profile is keyed by")
    role: Role = Field(..., description="Advisory access tier")
    is_active: bool = Field(..., description="Whether the account may sign in")
    created_at: datetime.datetime
    updated_at: datetime.datetime


class ProfileCredentials(Profile):
    hashed_password: str


class ProfileUpdate(CanonicalModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    role: Optional[Role] = None
    is_active: Optional[bool] = None


class Identity(BaseModel):
    """The authenticated caller, as supplied by the token."""

    user_id: str
    email: str


class Token(BaseModel):
    access_token: str
    token_type: str


class TokenData(BaseModel):
    sub: Optional[str] = None
