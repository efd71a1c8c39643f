"""
文章Schema模型
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Union
from datetime import datetime

from app.core.config import settings
from app.schemas.common import PaginationModel
from app.schemas.user import UserInfo


def parse_tags(value: Union[str, List[str], None]) -> Optional[List[str]]:
    """标签既可以是数组，也可以是逗号分隔的字符串"""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.split(",")
    return [tag.strip() for tag in value if tag and tag.strip()]


class ArticleCreate(BaseModel):
    """创建文章请求模型"""
    title: str = Field(
        ...,
        min_length=settings.ARTICLE_TITLE_MIN_LENGTH,
        max_length=settings.ARTICLE_TITLE_MAX_LENGTH,
        description="文章标题"
    )
    content: str = Field(..., min_length=settings.ARTICLE_CONTENT_MIN_LENGTH, description="文章内容")
    tags: Optional[Union[List[str], str]] = Field(None, description="标签数组或逗号分隔字符串")
    image: Optional[str] = Field(None, max_length=255, description="图片引用")
    
    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, value):
        return parse_tags(value)
    
    class Config:
        str_strip_whitespace = True


class ArticleUpdate(BaseModel):
    """更新文章请求模型"""
    title: Optional[str] = Field(
        None,
        min_length=settings.ARTICLE_TITLE_MIN_LENGTH,
        max_length=settings.ARTICLE_TITLE_MAX_LENGTH,
        description="文章标题"
    )
    content: Optional[str] = Field(None, min_length=settings.ARTICLE_CONTENT_MIN_LENGTH, description="文章内容")
    tags: Optional[Union[List[str], str]] = Field(None, description="标签数组或逗号分隔字符串")
    image: Optional[str] = Field(None, max_length=255, description="图片引用")
    
    @field_validator("tags", mode="before")
    @classmethod
    def normalize_tags(cls, value):
        return parse_tags(value)
    
    class Config:
        str_strip_whitespace = True


class ArticleResponse(BaseModel):
    """文章响应模型"""
    id: int
    title: str
    content: str
    tags: List[str] = []
    image: Optional[str] = None
    author: Optional[UserInfo] = None
    commentsCount: int = 0
    likesCount: int = 0
    createdAt: datetime
    updatedAt: datetime


class ArticleListResponse(BaseModel):
    articles: List[ArticleResponse]
    pagination: PaginationModel
