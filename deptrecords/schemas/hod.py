from pydantic import EmailStr, Field

from deptrecords.schemas.base import CamelModel


class HODCreate(CamelModel):
    institution_name: str = Field(min_length=1)
    username: str = Field(min_length=3)
    email: EmailStr
    password: str = Field(min_length=6)


class OTPVerify(CamelModel):
    email: EmailStr
    otp: str = Field(min_length=1)


class OTPResend(CamelModel):
    email: EmailStr


class LoginRequest(CamelModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RefreshRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class HODOut(CamelModel):
    id: str
    username: str
    institution_name: str
    email: str
    verified: bool
