"""
日志配置
"""
import logging
import sys

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"


def setup_logging(level: str = None) -> None:
    """
    初始化根日志处理器，重复调用时只更新日志级别
    """
    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())
    
    if not any(getattr(h, "_blog_platform", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._blog_platform = True
        root.addHandler(handler)
    
    # SQL日志只在调试时输出
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.DEBUG and root.level <= logging.DEBUG else logging.WARNING
    )
