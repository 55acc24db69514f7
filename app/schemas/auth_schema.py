from pydantic import BaseModel, Field
from typing import Optional


class TokenPayload(BaseModel):
    sub: Optional[str] = None
    contact: Optional[str] = None
    iat: Optional[int] = None
    exp: Optional[int] = None

    @property
    def user_id(self) -> int:
        return int(self.sub)


class UserLogin(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class UserCreate(BaseModel):
    email: str
    password: str
    name: str = Field(..., min_length=1, max_length=100)


class OTPSendRequest(BaseModel):
    phone: str


class OTPSendResponse(BaseModel):
    success: bool
    developmentOtp: Optional[str] = None


class OTPVerifyRequest(BaseModel):
    phone: str
    otp: str


class UserOut(BaseModel):
    id: int
    email: Optional[str] = None
    name: str
    phone: Optional[str] = None

    model_config = {
        "from_attributes": True
    }


class AuthResponse(BaseModel):
    token: str
    user: UserOut
