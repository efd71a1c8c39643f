"""
数据库连接和会话管理
"""
from datetime import datetime, timezone
from sqlalchemy import BigInteger, Integer
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from app.core.config import settings

# SQLite 只有 INTEGER PRIMARY KEY 才会自增
BigIntPK = BigInteger().with_variant(Integer(), "sqlite")


def build_engine(url: str = None, **kwargs) -> AsyncEngine:
    """
    创建异步引擎，连接池参数只用于服务端数据库
    """
    url = url or settings.DATABASE_URL
    options = {"echo": settings.DEBUG and settings.LOG_LEVEL.upper() == "DEBUG"}
    if not url.startswith("sqlite"):
        options.update(pool_pre_ping=True, pool_size=10, max_overflow=20)
    options.update(kwargs)
    return create_async_engine(url, **options)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


# 创建异步引擎
engine = build_engine()

# 创建会话工厂
AsyncSessionLocal = build_session_factory(engine)

# 创建Base类
Base = declarative_base()


async def get_db() -> AsyncSession:
    """
    获取数据库会话依赖
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


def get_session_factory() -> async_sessionmaker:
    """会话工厂依赖，供不适合持有请求级会话的长连接使用"""
    return AsyncSessionLocal


async def init_models(bind: AsyncEngine = None) -> None:
    """
    建表（开发环境和测试使用，生产环境走迁移）
    """
    import app.models  # noqa: F401  注册全部模型
    
    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
