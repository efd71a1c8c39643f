"""
评论模型
"""
from sqlalchemy import Column, BigInteger, Text, TIMESTAMP, ForeignKey, Index
from app.db.database import Base, BigIntPK, utc_now


class Comment(Base):
    __tablename__ = "comments"
    __table_args__ = (
        Index("ix_comments_article_created", "article_id", "created_at"),
    )
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    content = Column(Text, nullable=False)
    author_id = Column(BigInteger, ForeignKey("users.id"), nullable=False)
    article_id = Column(BigInteger, ForeignKey("articles.id"), nullable=False)
    # 为空表示顶层评论；非空时必须指向同一篇文章下的评论
    parent_comment_id = Column(BigInteger, ForeignKey("comments.id"), nullable=True, index=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utc_now)
