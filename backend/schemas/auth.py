from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime
from uuid import UUID


class AuthModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class AdminSignup(AuthModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6)
    company_name: Optional[str] = Field(None, max_length=255)
    phone: str = Field(..., min_length=1, max_length=20)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class AdminLogin(AuthModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class AdminProfileUpdate(AuthModel):
    """Only the fields that are sent, and non-empty, are changed."""
    name: Optional[str] = Field(None, max_length=255)
    email: Optional[EmailStr] = None
    company_name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)

    @field_validator("name", "email", "company_name", "phone", mode="before")
    @classmethod
    def blank_as_missing(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: Optional[str]) -> Optional[str]:
        return value.lower() if value else value


class PasswordChange(AuthModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class UserResponse(AuthModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

    id: UUID
    email: str
    name: str
    role: str
    approved: bool
    company_name: Optional[str] = None
    phone: Optional[str] = None
    last_login: Optional[datetime] = None
    created_at: datetime


class AuthResponse(AuthModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse
