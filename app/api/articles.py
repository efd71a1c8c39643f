"""
文章API
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.permissions import Actor
from app.db.database import get_db
from app.models.article import Article
from app.schemas.article import ArticleCreate, ArticleUpdate
from app.schemas.common import ResponseModel
from app.services.article_service import ArticleService
from app.utils.permissions import authorize_article_create, article_for_update, article_for_delete

router = APIRouter(prefix="/api/articles", tags=["文章"])


@router.get("", response_model=ResponseModel)
async def list_articles(
    page: int = Query(1, ge=1, description="页码"),
    limit: int = Query(10, ge=1, le=100, description="每页数量"),
    tag: Optional[str] = Query(None, description="标签"),
    search: Optional[str] = Query(None, description="搜索关键词"),
    db: AsyncSession = Depends(get_db)
):
    """
    文章列表（公开）
    """
    data = await ArticleService(db).list_articles(page=page, limit=limit, tag=tag, search=search)
    return ResponseModel(data=data)


@router.get("/{article_id}", response_model=ResponseModel)
async def get_article(
    article_id: int,
    db: AsyncSession = Depends(get_db)
):
    """
    文章详情（公开）
    """
    data = await ArticleService(db).get_detail(article_id)
    return ResponseModel(data=data)


@router.post("", response_model=ResponseModel, status_code=status.HTTP_201_CREATED)
async def create_article(
    article_data: ArticleCreate,
    actor: Actor = Depends(authorize_article_create),
    db: AsyncSession = Depends(get_db)
):
    """
    创建文章，作者为当前用户
    """
    data = await ArticleService(db).create(actor, article_data)
    return ResponseModel(message="Article created successfully", data=data)


@router.put("/{article_id}", response_model=ResponseModel)
async def update_article(
    article_data: ArticleUpdate,
    article: Article = Depends(article_for_update),
    db: AsyncSession = Depends(get_db)
):
    """
    更新文章（Admin、Editor，或Writer更新自己的文章）
    """
    data = await ArticleService(db).update(article, article_data)
    return ResponseModel(message="Article updated successfully", data=data)


@router.delete("/{article_id}", response_model=ResponseModel)
async def delete_article(
    article: Article = Depends(article_for_delete),
    db: AsyncSession = Depends(get_db)
):
    """
    删除文章（仅Admin）
    """
    await ArticleService(db).delete(article)
    return ResponseModel(message="Article deleted successfully")
