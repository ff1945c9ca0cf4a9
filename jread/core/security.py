import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jwt
from passlib.context import CryptContext
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from jread.core.config import settings

# 密码加密配置
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# JWT Bearer token
security = HTTPBearer()
optional_security = HTTPBearer(auto_error=False)


def _encode(data: dict, expire: datetime, token_type: str) -> str:
    to_encode = data.copy()
    # jti 用于登出时吊销单个令牌
    to_encode.update({"exp": expire, "type": token_type, "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """创建访问令牌"""
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(data, expire, "access")


def create_refresh_token(data: dict) -> str:
    """创建刷新令牌"""
    expire = datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return _encode(data, expire, "refresh")


def verify_token(token: str) -> Optional[dict]:
    """验证令牌"""
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.JWTError:
        return None


def token_ttl_seconds(payload: dict) -> int:
    """令牌剩余有效秒数"""
    exp = payload.get("exp")
    if exp is None:
        return 0
    return max(int(exp - datetime.now(timezone.utc).timestamp()), 0)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """验证密码"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """获取密码哈希"""
    return pwd_context.hash(password)


def _credentials_exception(detail: str = "Invalid authentication credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_access_token(token: str) -> dict:
    """解析访问令牌，失败抛出401"""
    payload = verify_token(token)
    if payload is None or payload.get("type") != "access":
        raise _credentials_exception()

    user_id_str = payload.get("sub")
    if user_id_str is None:
        raise _credentials_exception()

    try:
        payload["user_id"] = int(user_id_str)
    except (ValueError, TypeError):
        raise _credentials_exception("Invalid user ID in token")

    return payload


def get_token_payload(credentials: HTTPAuthorizationCredentials = Depends(security)) -> dict:
    """获取已验证的令牌内容"""
    return decode_access_token(credentials.credentials)


def get_optional_token_payload(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security)
) -> Optional[dict]:
    """未携带令牌时返回None，携带了无效令牌仍然报401"""
    if credentials is None:
        return None
    return decode_access_token(credentials.credentials)
