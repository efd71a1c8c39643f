"""
认证API
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.permissions import Actor
from app.db.database import get_db
from app.models.user import User
from app.schemas.common import ResponseModel
from app.schemas.user import UserRegister, UserLogin, RefreshTokenRequest, TokenResponse, UserInfo
from app.services.auth_service import AuthService
from app.services.user_service import UserService, build_user_response
from app.utils.auth import create_user_token, get_current_actor

router = APIRouter(prefix="/api/auth", tags=["认证"])


def _token_response(user: User, refresh_token: str) -> TokenResponse:
    return TokenResponse(
        accessToken=create_user_token(user),
        refreshToken=refresh_token,
        expiresIn=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user=UserInfo.model_validate(user),
    )


@router.post("/register", response_model=ResponseModel, status_code=status.HTTP_201_CREATED)
async def register(
    data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """
    注册（新账号角色为Reader）
    """
    user = await AuthService.register(db, data)
    refresh_token = await AuthService.issue_refresh_token(db, user)
    return ResponseModel(message="User registered successfully", data=_token_response(user, refresh_token))


@router.post("/login", response_model=ResponseModel)
async def login(
    data: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """
    邮箱密码登录
    """
    user = await AuthService.authenticate(db, data.email, data.password)
    refresh_token = await AuthService.issue_refresh_token(db, user)
    return ResponseModel(message="Login successful", data=_token_response(user, refresh_token))


@router.post("/refresh", response_model=ResponseModel)
async def refresh(
    data: RefreshTokenRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    刷新访问token，同时轮换刷新token
    """
    user, refresh_token = await AuthService.refresh(db, data.refreshToken)
    return ResponseModel(message="Token refreshed successfully", data=_token_response(user, refresh_token))


@router.post("/logout", response_model=ResponseModel)
async def logout(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    登出，作废当前刷新token
    """
    await AuthService.logout(db, actor.id)
    return ResponseModel(message="Logout successful")


@router.get("/me", response_model=ResponseModel)
async def get_me(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    获取当前用户信息
    """
    user = await UserService(db).get_or_404(actor.id)
    return ResponseModel(data=build_user_response(user))
