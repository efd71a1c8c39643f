"""
领域事件总线（进程内）
"""
import asyncio
import logging
from collections import defaultdict
from typing import Awaitable, Callable, Dict, List, Type

from app.events.domain_events import DomainEvent

logger = logging.getLogger(__name__)

EventHandler = Callable[[DomainEvent], Awaitable[None]]


class EventBus:
    """按事件类型分发给已订阅的处理器"""

    def __init__(self) -> None:
        self._handlers: Dict[Type[DomainEvent], List[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: Type[DomainEvent], handler: EventHandler) -> None:
        """订阅事件，只匹配精确类型（NewReply 不会触发 NewComment 的处理器）"""
        self._handlers[event_type].append(handler)

    def clear(self) -> None:
        self._handlers.clear()

    def handler_count(self, event_type: Type[DomainEvent]) -> int:
        return len(self._handlers.get(event_type, []))

    async def publish(self, event: DomainEvent) -> None:
        """
        并发执行所有处理器

        单个处理器失败只记录日志，不影响其他处理器，也不会抛给发布方
        """
        handlers = list(self._handlers.get(type(event), []))
        if not handlers:
            return
        
        results = await asyncio.gather(
            *(handler(event) for handler in handlers),
            return_exceptions=True,
        )
        for handler, result in zip(handlers, results):
            if isinstance(result, Exception):
                logger.warning(
                    "Event handler %s failed for %s (%s): %r",
                    getattr(handler, "__qualname__", repr(handler)),
                    type(event).__name__,
                    event.event_id,
                    result,
                )


event_bus = EventBus()


def get_event_bus() -> EventBus:
    """事件总线依赖"""
    return event_bus
