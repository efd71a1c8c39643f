"""
通知模型
"""
from enum import Enum
from sqlalchemy import Column, BigInteger, String, Text, Boolean, TIMESTAMP, ForeignKey, Index
from app.db.database import Base, BigIntPK, utc_now


class NotificationType(str, Enum):
    COMMENT = "comment"
    REPLY = "reply"
    LIKE = "like"


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_recipient_created", "recipient_id", "created_at"),
        Index("ix_notifications_recipient_read", "recipient_id", "read"),
    )
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    recipient_id = Column(BigInteger, ForeignKey("users.id"), nullable=False)
    type = Column(String(20), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    article_id = Column(BigInteger, nullable=False)
    article_title = Column(String(200), nullable=False)  # 创建时的标题快照，文章删除后仍可展示
    comment_id = Column(BigInteger, nullable=True)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utc_now, index=True)
