"""
点赞模型
"""
from sqlalchemy import Column, BigInteger, TIMESTAMP, ForeignKey, Index, UniqueConstraint
from app.db.database import Base, BigIntPK, utc_now


class Like(Base):
    __tablename__ = "likes"
    __table_args__ = (
        # 每个用户对每篇文章最多一个赞，由数据库保证
        UniqueConstraint("user_id", "article_id", name="uq_likes_user_article"),
        Index("ix_likes_article_created", "article_id", "created_at"),
    )
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey("users.id"), nullable=False)
    article_id = Column(BigInteger, ForeignKey("articles.id"), nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utc_now)
