"""
文章服务
"""
import json
import logging
from math import ceil
from typing import Optional

from sqlalchemy import select, delete, func, or_, cast, String
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.core.permissions import Actor
from app.models.article import Article
from app.models.comment import Comment
from app.models.like import Like
from app.models.user import User
from app.schemas.article import ArticleCreate, ArticleUpdate, ArticleResponse, ArticleListResponse
from app.schemas.common import PaginationModel
from app.schemas.user import UserInfo

logger = logging.getLogger(__name__)

ARTICLE_NOT_FOUND = "Article not found"


def _comments_count():
    return (
        select(func.count(Comment.id))
        .where(Comment.article_id == Article.id)
        .correlate(Article)
        .scalar_subquery()
    )


def _likes_count():
    return (
        select(func.count(Like.id))
        .where(Like.article_id == Article.id)
        .correlate(Article)
        .scalar_subquery()
    )


def build_article_response(
    article: Article,
    author: Optional[User],
    comments_count: int = 0,
    likes_count: int = 0
) -> ArticleResponse:
    return ArticleResponse(
        id=article.id,
        title=article.title,
        content=article.content,
        tags=article.tags or [],
        image=article.image,
        author=UserInfo.model_validate(author) if author else None,
        commentsCount=comments_count or 0,
        likesCount=likes_count or 0,
        createdAt=article.created_at,
        updatedAt=article.updated_at,
    )


class ArticleService:
    """文章服务类，权限检查在依赖层完成，这里只负责读写"""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _detail_query(self):
        return (
            select(
                Article,
                User,
                _comments_count().label("comments_count"),
                _likes_count().label("likes_count"),
            )
            .outerjoin(User, User.id == Article.author_id)
        )

    async def get_or_404(self, article_id: int) -> Article:
        """
        Raises:
            NotFoundError: 文章不存在
        """
        result = await self.db.execute(select(Article).where(Article.id == article_id))
        article = result.scalar_one_or_none()
        if article is None:
            raise NotFoundError(ARTICLE_NOT_FOUND)
        return article

    async def get_detail(self, article_id: int) -> ArticleResponse:
        result = await self.db.execute(self._detail_query().where(Article.id == article_id))
        row = result.first()
        if row is None:
            raise NotFoundError(ARTICLE_NOT_FOUND)
        article, author, comments_count, likes_count = row
        return build_article_response(article, author, comments_count, likes_count)

    async def list_articles(
        self,
        page: int = 1,
        limit: int = 10,
        tag: Optional[str] = None,
        search: Optional[str] = None
    ) -> ArticleListResponse:
        """
        分页查询文章，按创建时间倒序

        Args:
            tag: 精确匹配单个标签
            search: 标题或内容模糊匹配
        """
        conditions = []
        if tag:
            # tags 以JSON数组存储，按序列化后的元素匹配，兼容PostgreSQL和SQLite
            conditions.append(cast(Article.tags, String).contains(json.dumps(tag), autoescape=True))
        if search:
            keyword = f"%{search}%"
            conditions.append(or_(Article.title.ilike(keyword), Article.content.ilike(keyword)))

        total_result = await self.db.execute(select(func.count(Article.id)).where(*conditions))
        total = total_result.scalar_one()

        result = await self.db.execute(
            self._detail_query()
            .where(*conditions)
            .order_by(Article.created_at.desc(), Article.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        articles = [
            build_article_response(article, author, comments_count, likes_count)
            for article, author, comments_count, likes_count in result.all()
        ]

        return ArticleListResponse(
            articles=articles,
            pagination=PaginationModel(
                page=page,
                limit=limit,
                total=total,
                pages=ceil(total / limit) if total else 0,
            ),
        )

    async def create(self, actor: Actor, data: ArticleCreate) -> ArticleResponse:
        article = Article(
            title=data.title,
            content=data.content,
            tags=data.tags or [],
            image=data.image,
            author_id=actor.id,
        )
        self.db.add(article)
        await self.db.commit()
        await self.db.refresh(article)

        logger.info("Article %s created by user %s", article.id, actor.id)
        return await self.get_detail(article.id)

    async def update(self, article: Article, data: ArticleUpdate) -> ArticleResponse:
        """更新文章，作者字段不可修改"""
        if data.title is not None:
            article.title = data.title
        if data.content is not None:
            article.content = data.content
        if data.tags is not None:
            article.tags = data.tags
        if data.image is not None:
            article.image = data.image

        await self.db.commit()
        return await self.get_detail(article.id)

    async def delete(self, article: Article) -> None:
        """删除文章及其评论和点赞，已产生的通知保留（带有文章标题快照）"""
        article_id = article.id
        await self.db.execute(delete(Like).where(Like.article_id == article_id))
        await self.db.execute(delete(Comment).where(Comment.article_id == article_id))
        await self.db.execute(delete(Article).where(Article.id == article_id))
        await self.db.commit()

        logger.info("Article %s deleted", article_id)
