"""
认证服务
"""
import logging
from typing import Tuple

import bcrypt
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from app.core.config import settings
from app.core.exceptions import AuthenticationError, ValidationError
from app.core.roles import DEFAULT_ROLE
from app.models.user import User
from app.schemas.user import UserRegister
from app.utils.auth import REFRESH_TOKEN_TYPE, create_refresh_token, user_id_from_token

logger = logging.getLogger(__name__)


class AuthService:
    """认证服务类"""

    @staticmethod
    def hash_password(password: str) -> str:
        """
        使用bcrypt生成密码哈希

        Args:
            password: 明文密码

        Returns:
            str: 哈希字符串
        """
        salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            # 存储的哈希格式不正确
            return False

    @classmethod
    async def register(cls, db: AsyncSession, data: UserRegister) -> User:
        """
        注册新用户，新账号一律为Reader，角色只能由管理员修改

        Raises:
            ValidationError: 用户名或邮箱已被占用
        """
        result = await db.execute(
            select(User).where(or_(User.email == data.email, User.username == data.username))
        )
        if result.scalars().first():
            raise ValidationError("User with this email or username already exists")

        user = User(
            username=data.username,
            email=data.email,
            password_hash=cls.hash_password(data.password),
            role=DEFAULT_ROLE.value,
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)

        logger.info("User registered: %s (%s)", user.id, user.username)
        return user

    @classmethod
    async def authenticate(cls, db: AsyncSession, email: str, password: str) -> User:
        """
        校验邮箱和密码

        Raises:
            AuthenticationError: 邮箱不存在或密码错误（不区分两种情况）
        """
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if not user or not cls.verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid credentials")

        return user

    @classmethod
    async def issue_refresh_token(cls, db: AsyncSession, user: User) -> str:
        """签发新的刷新token并保存，之前签发的刷新token随之失效"""
        refresh_token = create_refresh_token(user)
        user.refresh_token = refresh_token
        await db.commit()
        await db.refresh(user)
        return refresh_token

    @classmethod
    async def refresh(cls, db: AsyncSession, refresh_token: str) -> Tuple[User, str]:
        """
        用刷新token换取新的token对（刷新token轮换，旧的只能用一次）

        Returns:
            Tuple[User, str]: 用户和新的刷新token

        Raises:
            AuthenticationError: 刷新token无效、过期、已登出或已被轮换
        """
        try:
            user_id = user_id_from_token(refresh_token, REFRESH_TOKEN_TYPE)
        except AuthenticationError:
            raise AuthenticationError("Invalid or expired refresh token")

        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None or user.refresh_token != refresh_token:
            raise AuthenticationError("Invalid or expired refresh token")

        return user, await cls.issue_refresh_token(db, user)

    @classmethod
    async def logout(cls, db: AsyncSession, user_id: int) -> None:
        """清空保存的刷新token，访问token到期后自然失效"""
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            return
        user.refresh_token = None
        await db.commit()
        logger.info("User logged out: %s", user_id)
