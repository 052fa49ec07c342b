"""
MoodTrack Backend — Auth Request/Response Schemas
===================================================

Wire names are camelCase (`firstName`, `userId`, ...); Python attributes
stay snake_case through pydantic aliases.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from moodtrack.services.password_service import BCRYPT_MAX_PASSWORD_BYTES

PASSWORD_MIN_LENGTH = 8


class SignupRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=False)

    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH)
    first_name: str = Field(alias="firstName", min_length=1, max_length=100)
    last_name: str = Field(alias="lastName", min_length=1, max_length=100)

    @field_validator("password")
    @classmethod
    def validate_password_bytes(cls, v: str) -> str:
        if len(v.encode("utf-8")) > BCRYPT_MAX_PASSWORD_BYTES:
            raise ValueError(f"Password must be at most {BCRYPT_MAX_PASSWORD_BYTES} bytes")
        return v


class SigninRequest(BaseModel):
    email: EmailStr
    password: str


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SigninResponseData(_CamelModel):
    user_id: str = Field(alias="userId", description="Account identifier (hex)")
    email: str
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    token: str = Field(description="Bearer token, valid for 24 hours")


class SignupResponseData(SigninResponseData):
    created_at: str = Field(alias="createdAt", description="RFC3339 creation time")
