"""
Persistence for entries, crews and work types.

Every function takes the request's session. Failures are logged, the
session is rolled back, and the caller gets ``False`` (or an empty result)
back; nothing here raises on a database error and nothing is retried.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional, Type, Union

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from production_tracker.models import Crew, ProductionEntry, WorkType
from production_tracker.schemas import EntryRecord, ReferenceItem

logger = logging.getLogger(__name__)

DEFAULT_CREWS = {"AJS1": "#3B82F6", "AJS2": "#EF4444"}
DEFAULT_TYPES = {"ROCK": "#9CA3AF", "NO ROCK": "#10B981"}

ReferenceModel = Union[Type[Crew], Type[WorkType]]
EDITABLE_FIELDS = ("date", "crew", "type", "feet")


# ---------- Entries ----------
def list_entries(db: Session) -> List[EntryRecord]:
    """All entries, newest date first, with legacy dash dates normalised."""
    try:
        rows = db.query(ProductionEntry).order_by(desc(ProductionEntry.id)).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching production data: {e}")
        db.rollback()
        return []
    records = [EntryRecord.model_validate(r) for r in rows]
    # sort after normalising; legacy dash dates do not order against slash ones
    records.sort(key=lambda r: r.date, reverse=True)
    return records


def get_entry(db: Session, entry_id: int) -> Optional[EntryRecord]:
    try:
        row = db.get(ProductionEntry, entry_id)
    except SQLAlchemyError as e:
        logger.error(f"Error fetching production entry {entry_id}: {e}")
        db.rollback()
        return None
    return EntryRecord.model_validate(row) if row else None


def insert_entry(db: Session, entry: EntryRecord) -> bool:
    row = ProductionEntry(
        date=entry.date,
        crew=entry.crew,
        type=entry.type,
        feet=entry.feet,
        username=entry.username,
    )
    try:
        db.add(row)
        db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Error adding production entry: {e}")
        db.rollback()
        return False
    logger.info(f"Entry {row.id} added by {row.username}: {row.feet} ft on {row.date}")
    return True


def update_entry(db: Session, entry_id: int, fields: Dict[str, object]) -> bool:
    """Overwrite the editable fields present in ``fields``; False if missing or on error."""
    try:
        row = db.get(ProductionEntry, entry_id)
        if row is None:
            return False
        for key in EDITABLE_FIELDS:
            if key in fields:
                setattr(row, key, fields[key])
        db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Error updating production entry {entry_id}: {e}")
        db.rollback()
        return False
    logger.info(f"Entry {entry_id} updated")
    return True


def delete_entry(db: Session, entry_id: int) -> bool:
    try:
        row = db.get(ProductionEntry, entry_id)
        if row is None:
            return False
        db.delete(row)
        db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Error removing production entry {entry_id}: {e}")
        db.rollback()
        return False
    logger.info(f"Entry {entry_id} removed")
    return True


# ---------- Crews / types ----------
def _list(db: Session, model: ReferenceModel) -> List[ReferenceItem]:
    try:
        rows = db.query(model).order_by(model.name).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching {model.__tablename__}: {e}")
        db.rollback()
        return []
    return [ReferenceItem.model_validate(r) for r in rows]


def _add(db: Session, model: ReferenceModel, name: str, color: str) -> bool:
    try:
        db.add(model(name=name, color=color))
        db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Error adding {name} to {model.__tablename__}: {e}")
        db.rollback()
        return False
    return True


def _remove(db: Session, model: ReferenceModel, name: str) -> bool:
    try:
        deleted = db.query(model).filter(model.name == name).delete()
        db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Error removing {name} from {model.__tablename__}: {e}")
        db.rollback()
        return False
    return deleted > 0


def _recolor(db: Session, model: ReferenceModel, name: str, color: str) -> bool:
    try:
        updated = db.query(model).filter(model.name == name).update({"color": color})
        db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Error updating color of {name} in {model.__tablename__}: {e}")
        db.rollback()
        return False
    return updated > 0


def list_crews(db: Session) -> List[ReferenceItem]:
    return _list(db, Crew)


def crew_names(db: Session) -> List[str]:
    return [c.name for c in list_crews(db)]


def add_crew(db: Session, name: str, color: str) -> bool:
    return _add(db, Crew, name, color)


def remove_crew(db: Session, name: str) -> bool:
    return _remove(db, Crew, name)


def update_crew_color(db: Session, name: str, color: str) -> bool:
    return _recolor(db, Crew, name, color)


def list_types(db: Session) -> List[ReferenceItem]:
    return _list(db, WorkType)


def type_names(db: Session) -> List[str]:
    return [t.name for t in list_types(db)]


def add_type(db: Session, name: str, color: str) -> bool:
    return _add(db, WorkType, name, color)


def remove_type(db: Session, name: str) -> bool:
    return _remove(db, WorkType, name)


def update_type_color(db: Session, name: str, color: str) -> bool:
    return _recolor(db, WorkType, name, color)


def initialize_default_data(db: Session) -> None:
    if not list_crews(db):
        for name, color in DEFAULT_CREWS.items():
            add_crew(db, name, color)
        logger.info("Seeded default crews")
    if not list_types(db):
        for name, color in DEFAULT_TYPES.items():
            add_type(db, name, color)
        logger.info("Seeded default types")
