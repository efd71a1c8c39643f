"""
评论Schema模型
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from app.core.config import settings
from app.schemas.user import UserInfo


class CommentCreate(BaseModel):
    """创建评论请求模型"""
    content: str = Field(..., min_length=1, max_length=settings.COMMENT_MAX_LENGTH, description="评论内容")
    articleId: int = Field(..., description="文章ID")
    parentCommentId: Optional[int] = Field(None, description="父评论ID，为null表示顶层评论")
    
    class Config:
        str_strip_whitespace = True


class ArticleRef(BaseModel):
    """评论中引用的文章"""
    id: int
    title: str
    author: int


class CommentResponse(BaseModel):
    """评论响应模型"""
    id: int
    content: str
    author: Optional[UserInfo] = None
    article: ArticleRef
    parentComment: Optional[int] = None
    createdAt: datetime
