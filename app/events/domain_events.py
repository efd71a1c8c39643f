"""
领域事件

控制器在写库提交成功后发布事件，通知引擎和实时广播各自订阅、互不依赖。
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple
from uuid import UUID, uuid4


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, kw_only=True)
class DomainEvent:
    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=_now)


@dataclass(frozen=True, kw_only=True)
class NewComment(DomainEvent):
    """顶层评论"""
    article_id: int
    article_title: str
    article_author_id: int
    actor_id: int
    actor_username: str
    comment_id: int
    comment: Dict[str, Any]  # 已序列化的完整评论（含作者和文章引用）


@dataclass(frozen=True, kw_only=True)
class NewReply(NewComment):
    """回复评论"""
    parent_comment_id: int
    parent_author_id: int


@dataclass(frozen=True, kw_only=True)
class NewLike(DomainEvent):
    article_id: int
    article_title: str
    article_author_id: int
    actor_id: int
    actor_username: str
    like_id: int
    like: Dict[str, Any]
    user: Optional[Dict[str, Any]] = None


@dataclass(frozen=True, kw_only=True)
class Unlike(DomainEvent):
    article_id: int
    actor_id: int
    like_id: int


@dataclass(frozen=True, kw_only=True)
class CommentDeleted(DomainEvent):
    article_id: int
    comment_id: int
    actor_id: int
    deleted_ids: Tuple[int, ...] = ()
