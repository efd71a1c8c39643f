"""
通用Schema模型
"""
from pydantic import BaseModel
from typing import Any, Optional


class ResponseModel(BaseModel):
    """标准响应模型"""
    success: bool = True
    message: Optional[str] = None
    data: Optional[Any] = None


class PaginationModel(BaseModel):
    """分页模型"""
    page: int
    limit: int
    total: int
    pages: int
