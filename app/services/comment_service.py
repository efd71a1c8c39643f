"""
评论服务

评论树通过 parent_comment_id 组成邻接表。读取和级联删除都用显式工作队列，
不依赖递归，回复层级再深也不会触发栈溢出。
"""
import logging
from typing import Any, Dict, List, Optional, Set

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.core.permissions import Actor
from app.events.bus import EventBus
from app.events.domain_events import NewComment, NewReply, CommentDeleted
from app.models.article import Article
from app.models.comment import Comment
from app.models.user import User
from app.schemas.comment import CommentCreate, CommentResponse, ArticleRef
from app.schemas.user import UserInfo

logger = logging.getLogger(__name__)


async def collect_subtree(db: AsyncSession, root_id: int) -> List[List[int]]:
    """
    按层收集以 root_id 为根的子树

    Returns:
        List[List[int]]: 第0层为根本身，之后每层为上一层的直接回复
    """
    levels: List[List[int]] = [[root_id]]
    visited: Set[int] = {root_id}
    frontier = [root_id]
    while frontier:
        result = await db.execute(
            select(Comment.id).where(Comment.parent_comment_id.in_(frontier))
        )
        children = [cid for cid in result.scalars().all() if cid not in visited]
        if not children:
            break
        visited.update(children)
        levels.append(children)
        frontier = children
    return levels


async def delete_subtree(db: AsyncSession, root_id: int) -> List[int]:
    """从最深一层开始删除整棵子树（不提交），返回删除的ID"""
    levels = await collect_subtree(db, root_id)
    for level in reversed(levels):
        await db.execute(delete(Comment).where(Comment.id.in_(level)))
    return [cid for level in levels for cid in level]


class CommentService:
    """评论服务类"""

    def __init__(self, db: AsyncSession, bus: EventBus):
        self.db = db
        self.bus = bus

    async def _get_article(self, article_id: int) -> Article:
        result = await self.db.execute(select(Article).where(Article.id == article_id))
        article = result.scalar_one_or_none()
        if article is None:
            raise NotFoundError("Article not found")
        return article

    async def get_or_404(self, comment_id: int) -> Comment:
        result = await self.db.execute(select(Comment).where(Comment.id == comment_id))
        comment = result.scalar_one_or_none()
        if comment is None:
            raise NotFoundError("Comment not found")
        return comment

    async def create(self, actor: Actor, data: CommentCreate) -> Dict[str, Any]:
        """
        创建评论或回复，提交成功后发布 NewComment / NewReply 事件

        Raises:
            NotFoundError: 文章或父评论不存在
            ValidationError: 父评论属于其他文章
        """
        article = await self._get_article(data.articleId)

        parent: Optional[Comment] = None
        if data.parentCommentId is not None:
            result = await self.db.execute(select(Comment).where(Comment.id == data.parentCommentId))
            parent = result.scalar_one_or_none()
            if parent is None:
                raise NotFoundError("Parent comment not found")
            if parent.article_id != article.id:
                raise ValidationError("Parent comment does not belong to this article")

        comment = Comment(
            content=data.content,
            author_id=actor.id,
            article_id=article.id,
            parent_comment_id=parent.id if parent else None,
        )
        self.db.add(comment)
        await self.db.commit()
        await self.db.refresh(comment)

        author_result = await self.db.execute(select(User).where(User.id == actor.id))
        author = author_result.scalar_one_or_none()

        payload = CommentResponse(
            id=comment.id,
            content=comment.content,
            author=UserInfo.model_validate(author) if author else None,
            article=ArticleRef(id=article.id, title=article.title, author=article.author_id),
            parentComment=comment.parent_comment_id,
            createdAt=comment.created_at,
        ).model_dump(mode="json")

        common = dict(
            article_id=article.id,
            article_title=article.title,
            article_author_id=article.author_id,
            actor_id=actor.id,
            actor_username=author.username if author else (actor.username or ""),
            comment_id=comment.id,
            comment=payload,
        )
        if parent is not None:
            event = NewReply(parent_comment_id=parent.id, parent_author_id=parent.author_id, **common)
        else:
            event = NewComment(**common)

        logger.info("Comment %s created on article %s by user %s", comment.id, article.id, actor.id)
        await self.bus.publish(event)
        return payload

    async def get_tree(self, article_id: int) -> Dict[str, Any]:
        """
        返回文章的评论树：顶层评论按时间倒序，回复按时间正序

        一次查询取出整篇文章的评论，再按 parent_comment_id 挂接到父节点
        """
        await self._get_article(article_id)

        result = await self.db.execute(
            select(Comment, User)
            .outerjoin(User, User.id == Comment.author_id)
            .where(Comment.article_id == article_id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
        rows = result.all()

        nodes: Dict[int, Dict[str, Any]] = {}
        for comment, author in rows:
            nodes[comment.id] = {
                "id": comment.id,
                "content": comment.content,
                "author": UserInfo.model_validate(author).model_dump() if author else None,
                "article": comment.article_id,
                "parentComment": comment.parent_comment_id,
                "createdAt": comment.created_at,
                "replies": [],
            }

        roots: List[Dict[str, Any]] = []
        for comment, _ in rows:
            node = nodes[comment.id]
            if comment.parent_comment_id is None:
                roots.append(node)
            elif comment.parent_comment_id in nodes:
                nodes[comment.parent_comment_id]["replies"].append(node)
            # 父评论已不存在的孤立回复不展示

        roots.reverse()
        return {
            "articleId": article_id,
            "count": len(roots),
            "comments": roots,
        }

    async def delete(self, comment: Comment, actor: Actor) -> int:
        """
        删除评论及其全部回复，从最深一层开始删除

        Returns:
            int: 删除的评论数量
        """
        deleted_ids = tuple(await delete_subtree(self.db, comment.id))
        await self.db.commit()

        logger.info(
            "Comment %s deleted by user %s (%d comments removed)",
            comment.id, actor.id, len(deleted_ids)
        )
        await self.bus.publish(CommentDeleted(
            article_id=comment.article_id,
            comment_id=comment.id,
            actor_id=actor.id,
            deleted_ids=deleted_ids,
        ))
        return len(deleted_ids)
