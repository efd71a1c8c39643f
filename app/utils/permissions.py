"""
路由级权限依赖

先加载资源（不存在返回404），再调用 app.core.permissions 中的策略，
通过时把资源交给路由函数，拒绝时抛出带 details 的403。
"""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.permissions import (
    Actor, enforce, can_create_article, can_update_article,
    can_delete_article, can_delete_comment, can_manage_users
)
from app.core.roles import parse_role
from app.db.database import get_db
from app.models.article import Article
from app.models.comment import Comment
from app.services.article_service import ArticleService
from app.services.comment_service import CommentService
from app.events.bus import EventBus, get_event_bus
from app.utils.auth import get_current_actor


async def authorize_article_create(actor: Actor = Depends(get_current_actor)) -> Actor:
    enforce(
        can_create_article(actor, parse_role(settings.ARTICLE_CREATE_MIN_ROLE)),
        "You do not have permission to create articles",
    )
    return actor


async def article_for_update(
    article_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
) -> Article:
    article = await ArticleService(db).get_or_404(article_id)
    enforce(
        can_update_article(actor, article.author_id),
        "You do not have permission to update this article",
    )
    return article


async def article_for_delete(
    article_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
) -> Article:
    article = await ArticleService(db).get_or_404(article_id)
    enforce(can_delete_article(actor), "Only Admins can delete articles")
    return article


async def comment_for_delete(
    comment_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus)
) -> Comment:
    comment = await CommentService(db, bus).get_or_404(comment_id)
    enforce(
        can_delete_comment(actor, comment.author_id),
        "You do not have permission to delete this comment",
    )
    return comment


async def require_admin(actor: Actor = Depends(get_current_actor)) -> Actor:
    """管理接口要求角色恰好为Admin"""
    enforce(can_manage_users(actor), "Access denied. Insufficient permissions.")
    return actor
