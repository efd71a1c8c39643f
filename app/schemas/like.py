"""
点赞Schema模型
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from app.schemas.user import UserInfo


class LikeToggle(BaseModel):
    """点赞/取消点赞请求模型"""
    articleId: int = Field(..., description="文章ID")


class LikeResponse(BaseModel):
    """点赞响应模型"""
    id: int
    user: Optional[UserInfo] = None
    article: int
    createdAt: datetime


class LikeToggleResponse(BaseModel):
    liked: bool
    like: Optional[LikeResponse] = None
    articleId: int
    userId: int


class ArticleLikesResponse(BaseModel):
    articleId: int
    count: int
    likes: List[LikeResponse]
    likedBy: List[UserInfo]


class LikeCheckResponse(BaseModel):
    liked: bool
    likeId: Optional[int] = None


class LikedArticle(BaseModel):
    """用户点赞过的文章摘要"""
    id: int
    title: str
    content: str
    image: Optional[str] = None
    tags: List[str] = []
    author: Optional[UserInfo] = None
    createdAt: datetime


class UserLikesResponse(BaseModel):
    userId: int
    count: int
    likes: List[LikeResponse]
    articles: List[LikedArticle]
