"""
用户与认证Schema模型
"""
from pydantic import BaseModel, Field, field_validator
from typing import List
from datetime import datetime

from app.core.roles import ALL_ROLES, is_valid_role
from app.schemas.common import PaginationModel

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class UserRegister(BaseModel):
    """注册请求模型"""
    username: str = Field(..., min_length=3, max_length=30, pattern=r"^[a-zA-Z0-9_]+$", description="用户名")
    email: str = Field(..., max_length=255, pattern=EMAIL_PATTERN, description="邮箱")
    password: str = Field(..., min_length=6, description="密码")
    
    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UserLogin(BaseModel):
    """登录请求模型"""
    email: str = Field(..., pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=1)
    
    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class RefreshTokenRequest(BaseModel):
    """刷新token请求模型"""
    refreshToken: str = Field(..., min_length=1)


class RoleUpdate(BaseModel):
    """修改角色请求模型"""
    role: str = Field(..., description=f"角色：{', '.join(ALL_ROLES)}")
    
    @field_validator("role")
    @classmethod
    def check_role(cls, value: str) -> str:
        if not is_valid_role(value):
            raise ValueError("Invalid role")
        return value


class UserInfo(BaseModel):
    """用户快照，嵌入到文章、评论、点赞中"""
    id: int
    username: str
    email: str
    role: str
    
    class Config:
        from_attributes = True


class UserResponse(UserInfo):
    """用户详情响应模型"""
    createdAt: datetime
    updatedAt: datetime


class TokenResponse(BaseModel):
    """登录响应模型"""
    accessToken: str
    refreshToken: str
    tokenType: str = "bearer"
    expiresIn: int
    user: UserInfo


class UserListResponse(BaseModel):
    users: List[UserResponse]
    pagination: PaginationModel


class StatsResponse(BaseModel):
    totalUsers: int
    totalArticles: int
    totalComments: int
