from __future__ import annotations

import logging
import re
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from production_tracker.auth import hash_password, verify_password
from production_tracker.core.config import get_settings
from production_tracker.core.permissions import AdminIdentity, Identity, SupervisorIdentity
from production_tracker.models import User

logger = logging.getLogger(__name__)

ROLES = ("admin", "supervisor")
_SYMBOL = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")


def is_password_valid(password: str) -> bool:
    """At least 8 characters with a letter, a digit and a symbol."""
    if len(password) < 8:
        return False
    if not re.search(r"[a-zA-Z]", password):
        return False
    if not re.search(r"[0-9]", password):
        return False
    return bool(_SYMBOL.search(password))


def to_identity(user: User) -> Identity:
    if user.role == "admin":
        return AdminIdentity(username=user.username)
    return SupervisorIdentity(username=user.username, crew=user.crew)


def list_users(db: Session) -> List[User]:
    try:
        return db.query(User).order_by(User.username).all()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching users: {e}")
        db.rollback()
        return []


def get_user(db: Session, username: str) -> Optional[User]:
    try:
        return db.query(User).filter(User.username == username).first()
    except SQLAlchemyError as e:
        logger.error(f"Error fetching user {username}: {e}")
        db.rollback()
        return None


def create_user(db: Session, username: str, password: str, role: str, crew: Optional[str] = None) -> bool:
    """False when the password is weak, the name is taken, or the insert fails."""
    if role not in ROLES:
        return False
    if not is_password_valid(password):
        return False
    if get_user(db, username) is not None:
        return False
    user = User(
        username=username,
        password=hash_password(password),
        role=role,
        crew=crew if role == "supervisor" else None,
    )
    try:
        db.add(user)
        db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Error creating user {username}: {e}")
        db.rollback()
        return False
    logger.info(f"User {username} created with role {role}")
    return True


def delete_user(db: Session, username: str) -> bool:
    try:
        deleted = db.query(User).filter(User.username == username).delete()
        db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Error deleting user {username}: {e}")
        db.rollback()
        return False
    return deleted > 0


def update_user_crew(db: Session, username: str, crew: Optional[str]) -> bool:
    try:
        updated = db.query(User).filter(User.username == username).update({"crew": crew})
        db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Error updating crew for {username}: {e}")
        db.rollback()
        return False
    return updated > 0


def update_user_password(db: Session, username: str, new_password: str) -> bool:
    if not is_password_valid(new_password):
        return False
    try:
        updated = db.query(User).filter(User.username == username).update(
            {"password": hash_password(new_password)}
        )
        db.commit()
    except SQLAlchemyError as e:
        logger.error(f"Error updating password for {username}: {e}")
        db.rollback()
        return False
    return updated > 0


def authenticate(db: Session, username: str, password: str) -> Optional[User]:
    user = get_user(db, username)
    if user is None or not verify_password(password, user.password):
        logger.warning(f"Failed login for {username}")
        return None
    return user


def register_user(db: Session, username: str, password: str, crew: Optional[str] = None) -> Optional[User]:
    """Self-service sign up; always a supervisor. Returns the logged-in user."""
    if create_user(db, username, password, "supervisor", crew):
        return authenticate(db, username, password)
    return None


def initialize_auth(db: Session) -> None:
    if list_users(db):
        return
    if create_user(db, "admin", get_settings().admin_password, "admin"):
        logger.info("Seeded default admin account")
    else:
        logger.error("Could not seed the admin account; check ADMIN_PASSWORD")
