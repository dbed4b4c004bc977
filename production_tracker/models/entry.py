from sqlalchemy import CheckConstraint, Column, Integer, Text

from production_tracker.core.timezone import now_local
from production_tracker.db.base import Base


class ProductionEntry(Base):
    __tablename__ = "ptr_entries"
    __table_args__ = (CheckConstraint("feet > 0", name="ck_ptr_entries_feet_positive"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Text, nullable=False, index=True)  # YYYY/MM/DD
    crew = Column(Text, nullable=False)
    type = Column(Text, nullable=False)
    feet = Column(Integer, nullable=False)
    username = Column(Text, nullable=False, index=True)
    created_at = Column(Text, nullable=False, default=lambda: now_local().isoformat())

    def __repr__(self) -> str:
        return f"<ProductionEntry(id={self.id}, date={self.date}, crew={self.crew}, feet={self.feet})>"


__all__ = ["ProductionEntry"]
