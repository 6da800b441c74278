import re
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator


def _lower(value: str | None) -> str | None:
    return value.strip().lower() if value else value


class UserCreate(BaseModel):
    full_name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    student_email: EmailStr | None = None
    institute_name: str | None = Field(default=None, max_length=255)
    country: str | None = Field(default=None, max_length=100)
    location: str | None = Field(default=None, max_length=255)
    qualification: str | None = Field(default=None, max_length=255)
    course: str | None = Field(default=None, max_length=255)
    expertise: list[str] = Field(default_factory=list)
    bio: str | None = Field(default=None, max_length=2000)

    @field_validator("email", "student_email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        return _lower(value)

    @field_validator("password")
    @classmethod
    def validate_password_strength(cls, value: str) -> str:
        if not re.search(r"[A-Za-z]", value) or not re.search(r"\d", value):
            raise ValueError("Password must include letters and numbers")
        return value


class UserOut(BaseModel):
    """Public user profile response."""
    id: int
    email: EmailStr
    full_name: str
    student_email: str | None = None
    institute_name: str | None = None
    country: str | None = None
    location: str | None = None
    qualification: str | None = None
    course: str | None = None
    expertise: list[str] = []
    profile_picture: str | None = None
    bio: str | None = None
    created_at: datetime
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class UserBrief(BaseModel):
    """Identity shown next to meetings and memberships."""
    id: int
    full_name: str
    email: str
    profile_picture: str | None = None

    class Config:
        from_attributes = True


class UserProfileUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = None
    student_email: EmailStr | None = None
    institute_name: str | None = Field(default=None, max_length=255)
    country: str | None = Field(default=None, max_length=100)
    location: str | None = Field(default=None, max_length=255)
    qualification: str | None = Field(default=None, max_length=255)
    course: str | None = Field(default=None, max_length=255)
    expertise: list[str] | None = None
    profile_picture: str | None = Field(default=None, max_length=512)
    bio: str | None = Field(default=None, max_length=2000)

    @field_validator("email", "student_email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        return _lower(value)

    class Config:
        extra = "forbid"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _lower(value)


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserOut
