"""
点赞服务
"""
import logging
from typing import Optional, Tuple

from sqlalchemy import select, delete, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.core.exceptions import ConflictError, NotFoundError
from app.core.permissions import Actor
from app.events.bus import EventBus
from app.events.domain_events import NewLike, Unlike
from app.models.article import Article
from app.models.like import Like
from app.models.user import User
from app.schemas.like import (
    LikeResponse, LikeToggleResponse, ArticleLikesResponse,
    LikeCheckResponse, LikedArticle, UserLikesResponse
)
from app.schemas.user import UserInfo

logger = logging.getLogger(__name__)


def build_like_response(like: Like, user: Optional[User]) -> LikeResponse:
    return LikeResponse(
        id=like.id,
        user=UserInfo.model_validate(user) if user else None,
        article=like.article_id,
        createdAt=like.created_at,
    )


class LikeService:
    """点赞服务类"""

    def __init__(self, db: AsyncSession, bus: EventBus):
        self.db = db
        self.bus = bus

    async def _get_article(self, article_id: int) -> Article:
        result = await self.db.execute(select(Article).where(Article.id == article_id))
        article = result.scalar_one_or_none()
        if article is None:
            raise NotFoundError("Article not found")
        return article

    async def _find(self, user_id: int, article_id: int) -> Optional[Like]:
        result = await self.db.execute(
            select(Like).where(and_(Like.user_id == user_id, Like.article_id == article_id))
        )
        return result.scalar_one_or_none()

    async def toggle(self, actor: Actor, article_id: int) -> Tuple[bool, LikeToggleResponse]:
        """
        点赞/取消点赞

        Returns:
            (created, response): created 为True表示本次新增了点赞

        Raises:
            NotFoundError: 文章不存在
            ConflictError: 并发请求下唯一约束冲突
        """
        article = await self._get_article(article_id)
        existing = await self._find(actor.id, article_id)

        if existing is not None:
            like_id = existing.id
            result = await self.db.execute(delete(Like).where(Like.id == like_id))
            await self.db.commit()
            # 并发取消时只有真正删除的一方发布事件
            if result.rowcount:
                await self.bus.publish(Unlike(article_id=article_id, actor_id=actor.id, like_id=like_id))
            return False, LikeToggleResponse(liked=False, articleId=article_id, userId=actor.id)

        like = Like(user_id=actor.id, article_id=article_id)
        self.db.add(like)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("You have already liked this article")
        await self.db.refresh(like)

        user_result = await self.db.execute(select(User).where(User.id == actor.id))
        user = user_result.scalar_one_or_none()
        like_response = build_like_response(like, user)
        user_snapshot = like_response.user.model_dump() if like_response.user else None

        logger.info("User %s liked article %s", actor.id, article_id)
        await self.bus.publish(NewLike(
            article_id=article.id,
            article_title=article.title,
            article_author_id=article.author_id,
            actor_id=actor.id,
            actor_username=user.username if user else (actor.username or ""),
            like_id=like.id,
            like=like_response.model_dump(mode="json"),
            user=user_snapshot,
        ))
        return True, LikeToggleResponse(liked=True, like=like_response, articleId=article_id, userId=actor.id)

    async def list_for_article(self, article_id: int) -> ArticleLikesResponse:
        await self._get_article(article_id)
        result = await self.db.execute(
            select(Like, User)
            .outerjoin(User, User.id == Like.user_id)
            .where(Like.article_id == article_id)
            .order_by(Like.created_at.desc(), Like.id.desc())
        )
        likes = [build_like_response(like, user) for like, user in result.all()]
        return ArticleLikesResponse(
            articleId=article_id,
            count=len(likes),
            likes=likes,
            likedBy=[like.user for like in likes if like.user is not None],
        )

    async def check(self, actor: Actor, article_id: int) -> LikeCheckResponse:
        await self._get_article(article_id)
        like = await self._find(actor.id, article_id)
        return LikeCheckResponse(liked=like is not None, likeId=like.id if like else None)

    async def list_for_user(self, user_id: int) -> UserLikesResponse:
        """用户点赞过的文章，按点赞时间倒序"""
        author = aliased(User)
        result = await self.db.execute(
            select(Like, User, Article, author)
            .outerjoin(User, User.id == Like.user_id)
            .outerjoin(Article, Article.id == Like.article_id)
            .outerjoin(author, author.id == Article.author_id)
            .where(Like.user_id == user_id)
            .order_by(Like.created_at.desc(), Like.id.desc())
        )

        likes = []
        articles = []
        for like, user, article, article_author in result.all():
            likes.append(build_like_response(like, user))
            if article is not None:
                articles.append(LikedArticle(
                    id=article.id,
                    title=article.title,
                    content=article.content,
                    image=article.image,
                    tags=article.tags or [],
                    author=UserInfo.model_validate(article_author) if article_author else None,
                    createdAt=article.created_at,
                ))

        return UserLikesResponse(userId=user_id, count=len(likes), likes=likes, articles=articles)
