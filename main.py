"""
博客平台 - FastAPI应用主入口
"""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.core.config import settings
from app.core.exceptions import register_exception_handlers
from app.core.logging import setup_logging
from app.db.database import AsyncSessionLocal, init_models
from app.events.bus import event_bus
from app.events.subscribers import register_event_handlers
from app.realtime.manager import room_manager
from app.services.notification_retention import run_retention_worker
from app.api import auth, articles, comments, likes, notifications, admin, realtime

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.DEBUG:
        await init_models()
    register_event_handlers(event_bus, room_manager, AsyncSessionLocal)
    retention_task = asyncio.create_task(run_retention_worker(AsyncSessionLocal))
    logger.info("%s %s started", settings.APP_NAME, settings.APP_VERSION)

    yield

    retention_task.cancel()
    try:
        await retention_task
    except asyncio.CancelledError:
        pass
    event_bus.clear()


# 创建FastAPI应用
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="博客平台后端API",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# 配置CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)

register_exception_handlers(app)

# 注册路由
app.include_router(auth.router)
app.include_router(articles.router)
app.include_router(comments.router)
app.include_router(likes.router)
app.include_router(notifications.router)
app.include_router(admin.router)
app.include_router(realtime.router)


@app.get("/")
async def root():
    """根路径"""
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "message": "Blog Platform API is running"
    }


@app.get("/api/health")
async def health_check():
    """健康检查"""
    return {
        "success": True,
        "status": "healthy",
        "connections": room_manager.connection_count
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
