from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime, func
from Song_Stats_Console.app.db import Base
from datetime import datetime


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


class Account(Base):
    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(64), unique=True, nullable=False)
    pass_hash = Column(String(255), nullable=False)
    role = Column(String(32), default=Role.USER.value, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value

    def __repr__(self):
        return f"<Account {self.username!r} role={self.role}>"
