"""
用户管理服务（管理员）
"""
import logging
from math import ceil
from typing import Tuple

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.core.permissions import Actor, ensure_not_self
from app.core.roles import parse_role
from app.models.article import Article
from app.models.comment import Comment
from app.models.like import Like
from app.models.notification import Notification
from app.models.user import User
from app.schemas.common import PaginationModel
from app.schemas.user import UserResponse, UserListResponse, StatsResponse
from app.services.comment_service import delete_subtree

logger = logging.getLogger(__name__)


def build_user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        role=user.role,
        createdAt=user.created_at,
        updatedAt=user.updated_at,
    )


class UserService:
    """用户管理服务类"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_or_404(self, user_id: int) -> User:
        result = await self.db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def list_users(self, page: int = 1, limit: int = 20) -> UserListResponse:
        total_result = await self.db.execute(select(func.count(User.id)))
        total = total_result.scalar_one()

        result = await self.db.execute(
            select(User)
            .order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return UserListResponse(
            users=[build_user_response(user) for user in result.scalars().all()],
            pagination=PaginationModel(
                page=page,
                limit=limit,
                total=total,
                pages=ceil(total / limit) if total else 0,
            ),
        )

    async def update_role(self, actor: Actor, user_id: int, role: str) -> Tuple[str, User]:
        """
        修改用户角色

        Returns:
            (old_role, user)

        Raises:
            InvalidRole: 角色不合法
            ValidationError: 修改自己的角色
            NotFoundError: 用户不存在
        """
        new_role = parse_role(role)
        ensure_not_self(actor, user_id, "You cannot change your own role")

        user = await self.get_or_404(user_id)
        old_role = user.role
        user.role = new_role.value
        await self.db.commit()
        await self.db.refresh(user)

        logger.info("User %s role changed from %s to %s by admin %s", user.id, old_role, user.role, actor.id)
        return old_role, user

    async def delete_user(self, actor: Actor, user_id: int) -> None:
        ensure_not_self(actor, user_id, "You cannot delete your own account")

        user = await self.get_or_404(user_id)

        # 先清理引用该用户的数据
        await self.db.execute(delete(Notification).where(Notification.recipient_id == user_id))
        await self.db.execute(delete(Like).where(Like.user_id == user_id))

        result = await self.db.execute(select(Comment.id).where(Comment.author_id == user_id))
        for comment_id in result.scalars().all():
            await delete_subtree(self.db, comment_id)

        own_articles = select(Article.id).where(Article.author_id == user_id)
        await self.db.execute(delete(Like).where(Like.article_id.in_(own_articles)))
        await self.db.execute(delete(Comment).where(Comment.article_id.in_(own_articles)))
        await self.db.execute(delete(Article).where(Article.author_id == user_id))

        await self.db.delete(user)
        await self.db.commit()

        logger.info("User %s deleted by admin %s", user_id, actor.id)

    async def stats(self) -> StatsResponse:
        users = await self.db.execute(select(func.count(User.id)))
        articles = await self.db.execute(select(func.count(Article.id)))
        comments = await self.db.execute(select(func.count(Comment.id)))
        return StatsResponse(
            totalUsers=users.scalar_one(),
            totalArticles=articles.scalar_one(),
            totalComments=comments.scalar_one(),
        )
