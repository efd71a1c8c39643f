"""
认证工具函数
"""
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from uuid import uuid4
from jose import JWTError, jwt
from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.core.permissions import Actor
from app.core.roles import parse_role
from app.db.database import get_db
from app.models.user import User

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
    token_type: str = ACCESS_TOKEN_TYPE
) -> str:
    """
    创建JWT token

    Args:
        data: 要编码到token中的数据
        expires_delta: token过期时间增量，默认使用配置中的时间
        token_type: access 或 refresh，写入 type 声明

    Returns:
        str: JWT token字符串
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "type": token_type})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


def create_user_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """为用户签发token，role 仅供前端展示，服务端每次请求都重新读取角色"""
    return create_access_token({"sub": str(user.id), "role": user.role}, expires_delta)


def create_refresh_token(user: User) -> str:
    """签发刷新token，jti 保证每次签发的token都不相同"""
    return create_access_token(
        {"sub": str(user.id), "jti": uuid4().hex},
        timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
        REFRESH_TOKEN_TYPE,
    )


def verify_token(token: str) -> Dict[str, Any]:
    """
    验证JWT token

    Args:
        token: JWT token字符串

    Returns:
        Dict: token中的payload数据

    Raises:
        AuthenticationError: token无效或过期
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        return payload
    except JWTError:
        raise AuthenticationError("Invalid or expired token")


def user_id_from_token(token: Optional[str], token_type: str = ACCESS_TOKEN_TYPE) -> int:
    """
    从token中解析用户ID（Socket握手同样使用）

    Raises:
        AuthenticationError: 缺少token、token无效、类型不符或不含用户ID
    """
    if not token:
        raise AuthenticationError("Authentication token required")

    payload = verify_token(token)
    if payload.get("type", ACCESS_TOKEN_TYPE) != token_type:
        raise AuthenticationError("Invalid or expired token")

    subject = payload.get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid or expired token")


def extract_bearer_token(authorization: Optional[str]) -> str:
    """解析 "Bearer {token}" 格式的请求头"""
    if not authorization or not authorization.strip():
        raise AuthenticationError("Authentication required")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError("Invalid authorization header, expected: Bearer {token}")
    return parts[1]


async def load_actor(db: AsyncSession, user_id: int) -> Actor:
    """
    按用户ID加载操作者，角色以数据库为准

    Raises:
        AuthenticationError: 用户已不存在
    """
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise AuthenticationError("User not found or token revoked")

    return Actor(id=user.id, role=parse_role(user.role), username=user.username)


async def get_current_actor(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db)
) -> Actor:
    """
    从请求头获取当前操作者

    不信任token中的role声明，角色变更在下一次请求即生效

    Raises:
        AuthenticationError: 未提供token、token无效或用户已不存在
    """
    user_id = user_id_from_token(extract_bearer_token(authorization))
    return await load_actor(db, user_id)
