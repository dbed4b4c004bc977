from sqlalchemy import Column, Integer, Text

from production_tracker.core.timezone import now_local
from production_tracker.db.base import Base


class User(Base):
    __tablename__ = "ptr_users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(Text, nullable=False, unique=True, index=True)
    password = Column(Text, nullable=False)  # salted hash, see services.users
    role = Column(Text, nullable=False, default="supervisor")  # admin / supervisor
    crew = Column(Text, nullable=True)
    created_at = Column(Text, nullable=False, default=lambda: now_local().isoformat())

    def __repr__(self) -> str:
        return f"<User(username={self.username}, role={self.role})>"


__all__ = ["User"]
