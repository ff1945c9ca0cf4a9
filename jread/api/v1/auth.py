import redis.asyncio as redis
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from jread.api.deps import get_current_user
from jread.core.security import get_token_payload
from jread.db.database import get_db
from jread.db.redis import get_redis
from jread.models.user import User
from jread.services.auth import AuthService
from jread.services.user import UserService
from jread.schemas.auth import (
    SignupRequest,
    LoginRequest,
    TokenResponse,
    SignupResponse,
    RefreshTokenRequest,
    AccessTokenResponse
)
from jread.schemas.interaction import SuccessResponse
from jread.schemas.user import UserPrivateResponse, UserUpdate

router = APIRouter()


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    user_data: SignupRequest,
    db: AsyncSession = Depends(get_db)
):
    """用户注册，成功后直接登录"""
    auth_service = AuthService(db)

    try:
        user = await auth_service.register_user(user_data)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    return SignupResponse(**auth_service.create_user_tokens(user))


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """用户登录"""
    auth_service = AuthService(db)

    user = await auth_service.authenticate_user(login_data)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password"
        )

    return auth_service.create_user_tokens(user)


@router.post("/refresh", response_model=AccessTokenResponse)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    db: AsyncSession = Depends(get_db)
):
    """刷新访问令牌"""
    auth_service = AuthService(db)

    tokens = await auth_service.refresh_access_token(refresh_data.refresh_token)
    if not tokens:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token"
        )

    return tokens


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    payload: dict = Depends(get_token_payload),
    redis_client: redis.Redis = Depends(get_redis)
):
    """用户登出：吊销当前访问令牌"""
    await AuthService.logout(redis_client, payload)
    return SuccessResponse()


@router.get("/me", response_model=UserPrivateResponse)
async def get_current_user_profile(current_user: User = Depends(get_current_user)):
    """获取当前用户信息"""
    return current_user


@router.patch("/me", response_model=UserPrivateResponse)
async def update_current_user_profile(
    user_data: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """更新资料与隐私设置"""
    return await UserService(db).update(current_user, user_data)


@router.delete("/me", response_model=SuccessResponse)
async def delete_current_user(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """删除自己的账号（级联删除作品）"""
    await UserService(db).delete_account(current_user.id)
    return SuccessResponse()
