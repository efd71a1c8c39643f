"""
评论API
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import Actor
from app.db.database import get_db
from app.events.bus import EventBus, get_event_bus
from app.models.comment import Comment
from app.schemas.comment import CommentCreate
from app.schemas.common import ResponseModel
from app.services.comment_service import CommentService
from app.utils.auth import get_current_actor
from app.utils.permissions import comment_for_delete

router = APIRouter(prefix="/api/comments", tags=["评论"])


@router.post("", response_model=ResponseModel, status_code=status.HTTP_201_CREATED)
async def create_comment(
    comment_data: CommentCreate,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus)
):
    """
    发表评论或回复
    """
    data = await CommentService(db, bus).create(actor, comment_data)
    return ResponseModel(message="Comment created successfully", data=data)


@router.get("/article/{article_id}", response_model=ResponseModel)
async def get_comments_by_article(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus)
):
    """
    获取文章评论树（公开）
    """
    data = await CommentService(db, bus).get_tree(article_id)
    return ResponseModel(data=data)


@router.delete("/{comment_id}", response_model=ResponseModel)
async def delete_comment(
    comment: Comment = Depends(comment_for_delete),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus)
):
    """
    删除评论及其全部回复（评论作者或Admin）
    """
    count = await CommentService(db, bus).delete(comment, actor)
    return ResponseModel(
        message="Comment and its replies deleted successfully",
        data={"deletedCount": count},
    )
