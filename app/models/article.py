"""
文章模型
"""
from sqlalchemy import Column, BigInteger, String, Text, JSON, TIMESTAMP, ForeignKey, Index
from app.db.database import Base, BigIntPK, utc_now


class Article(Base):
    __tablename__ = "articles"
    __table_args__ = (
        Index("ix_articles_created_at", "created_at"),
    )
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    tags = Column(JSON, nullable=False, default=list)
    author_id = Column(BigInteger, ForeignKey("users.id"), nullable=False, index=True)  # 作者固定，不可转移
    image = Column(String(255), nullable=True)  # 图片引用，上传由外部处理
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
