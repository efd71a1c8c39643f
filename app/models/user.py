"""
用户模型
"""
from sqlalchemy import Column, String, Text, TIMESTAMP
from app.core.roles import DEFAULT_ROLE
from app.db.database import Base, BigIntPK, utc_now


class User(Base):
    __tablename__ = "users"
    
    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    username = Column(String(30), unique=True, nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=DEFAULT_ROLE.value)
    refresh_token = Column(Text, nullable=True)  # 当前有效的刷新token，登出时清空
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)
    
    def snapshot(self) -> dict:
        """对外展示的用户快照（不含密码）"""
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
        }
