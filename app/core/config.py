"""
应用配置文件
"""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """应用配置"""
    
    # 应用基本配置
    APP_NAME: str = "Blog Platform API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    
    # 数据库配置
    DB_USERNAME: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "blog_platform"
    DATABASE_URL_OVERRIDE: Optional[str] = None  # 完整的异步连接串，优先于上面的分项配置
    
    # JWT配置
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    BCRYPT_ROUNDS: int = 12
    
    # CORS配置
    CORS_ORIGINS: list = ["http://localhost:4200"]
    
    # 内容校验
    COMMENT_MAX_LENGTH: int = 1000
    ARTICLE_TITLE_MIN_LENGTH: int = 3
    ARTICLE_TITLE_MAX_LENGTH: int = 200
    ARTICLE_CONTENT_MIN_LENGTH: int = 10
    
    # 通知配置
    NOTIFICATION_DEFAULT_LIMIT: int = 50
    NOTIFICATION_RETENTION_DAYS: int = 30  # 超过保留期的通知无论是否已读都会被清理
    NOTIFICATION_PURGE_INTERVAL_SECONDS: int = 3600
    LIKE_NOTIFICATIONS_ENABLED: bool = True
    
    # 单个连接允许积压的消息数，超过后断开该连接
    SOCKET_QUEUE_MAX_SIZE: int = 1000
    
    # 创建文章的最低角色，默认任何已登录用户都可以创建
    ARTICLE_CREATE_MIN_ROLE: str = "Reader"
    
    @property
    def DATABASE_URL(self) -> str:
        """获取数据库连接URL"""
        if self.DATABASE_URL_OVERRIDE:
            return self.DATABASE_URL_OVERRIDE
        return f"postgresql+asyncpg://{self.DB_USERNAME}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
    
    class Config:
        case_sensitive = True
        env_file = ".env"


settings = Settings()
