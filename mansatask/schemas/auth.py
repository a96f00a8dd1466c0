from typing import Annotated, Optional

from pydantic import AfterValidator, EmailStr, Field

from mansatask.schemas import CamelModel, lower_email

LowerEmail = Annotated[EmailStr, AfterValidator(lower_email)]


class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: LowerEmail
    password: str = Field(..., min_length=8, max_length=128)
    phone: Optional[str] = Field(default=None, max_length=20)


class LoginRequest(CamelModel):
    email: LowerEmail
    password: str = Field(..., min_length=1)


class RefreshRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1)


class ForgotPasswordRequest(CamelModel):
    email: LowerEmail


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    password: str = Field(..., min_length=8, max_length=128)


class UpdateProfileRequest(CamelModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    email: Optional[LowerEmail] = None
    phone: Optional[str] = Field(default=None, max_length=20)
