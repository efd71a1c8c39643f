"""
点赞API
"""
from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import Actor, can_toggle_like, enforce
from app.db.database import get_db
from app.events.bus import EventBus, get_event_bus
from app.schemas.common import ResponseModel
from app.schemas.like import LikeToggle
from app.services.like_service import LikeService
from app.utils.auth import get_current_actor

router = APIRouter(prefix="/api/likes", tags=["点赞"])


@router.post("", response_model=ResponseModel)
async def toggle_like(
    like_data: LikeToggle,
    response: Response,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus)
):
    """
    点赞/取消点赞：新增返回201，取消返回200
    """
    enforce(can_toggle_like(actor), "Access denied. Insufficient permissions.")
    created, data = await LikeService(db, bus).toggle(actor, like_data.articleId)
    if created:
        response.status_code = status.HTTP_201_CREATED
        return ResponseModel(message="Article liked successfully", data=data)
    return ResponseModel(message="Article unliked successfully", data=data)


@router.get("/article/{article_id}", response_model=ResponseModel)
async def get_likes_by_article(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus)
):
    data = await LikeService(db, bus).list_for_article(article_id)
    return ResponseModel(data=data)


@router.get("/article/{article_id}/check", response_model=ResponseModel)
async def check_user_like(
    article_id: int,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus)
):
    """
    当前用户是否已点赞
    """
    data = await LikeService(db, bus).check(actor, article_id)
    return ResponseModel(data=data)


@router.get("/user/{user_id}", response_model=ResponseModel)
async def get_likes_by_user(
    user_id: int,
    db: AsyncSession = Depends(get_db),
    bus: EventBus = Depends(get_event_bus)
):
    data = await LikeService(db, bus).list_for_user(user_id)
    return ResponseModel(data=data)
