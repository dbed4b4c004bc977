from sqlalchemy import Column, Integer, Text

from production_tracker.core.timezone import now_local
from production_tracker.db.base import Base


class Crew(Base):
    __tablename__ = "ptr_crews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False, unique=True)
    color = Column(Text, nullable=False, default="#3B82F6")
    created_at = Column(Text, nullable=False, default=lambda: now_local().isoformat())


class WorkType(Base):
    __tablename__ = "ptr_types"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False, unique=True)
    color = Column(Text, nullable=False, default="#3B82F6")
    created_at = Column(Text, nullable=False, default=lambda: now_local().isoformat())


__all__ = ["Crew", "WorkType"]
