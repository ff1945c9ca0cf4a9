from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from jread.core.permissions import UserRole


# 用户注册请求
class SignupRequest(BaseModel):
    username: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=72)
    role: UserRole = UserRole.USER
    pen_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = None


# 用户登录请求
class LoginRequest(BaseModel):
    email: EmailStr
    password: str


# 令牌响应
class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class SignupResponse(TokenResponse):
    message: str = "Signup successful!"


# 刷新令牌请求
class RefreshTokenRequest(BaseModel):
    refresh_token: str


class AccessTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
