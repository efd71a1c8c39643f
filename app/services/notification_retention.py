"""
通知保留期清理后台任务
"""
import asyncio
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.config import settings
from app.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


async def purge_once(session_factory: async_sessionmaker) -> int:
    """执行一次清理，返回删除的通知数量"""
    async with session_factory() as db:
        removed = await NotificationService(db).purge_expired()
    if removed:
        logger.info("Purged %d notifications older than %d days", removed, settings.NOTIFICATION_RETENTION_DAYS)
    return removed


async def run_retention_worker(
    session_factory: Optional[async_sessionmaker] = None,
    interval: Optional[float] = None
):
    """
    通知清理工作进程（后台运行）
    按配置间隔删除超过保留期的通知，出错只记录日志，下一轮继续
    """
    if session_factory is None:
        from app.db.database import AsyncSessionLocal
        session_factory = AsyncSessionLocal
    interval = interval or settings.NOTIFICATION_PURGE_INTERVAL_SECONDS

    while True:
        try:
            await purge_once(session_factory)
        except Exception:
            logger.exception("Notification retention worker error")

        await asyncio.sleep(interval)
