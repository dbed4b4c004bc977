from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Annotated, Any, Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from production_tracker.core.dates import from_storage_string

EDIT_WINDOW_DAYS = 30


class AdminIdentity(BaseModel):
    role: Literal["admin"] = "admin"
    username: str


class SupervisorIdentity(BaseModel):
    role: Literal["supervisor"] = "supervisor"
    username: str
    crew: Optional[str] = None


Identity = Annotated[Union[AdminIdentity, SupervisorIdentity], Field(discriminator="role")]


def is_admin(identity: Optional[Identity]) -> bool:
    return isinstance(identity, AdminIdentity)


def edit_cutoff(now: date | datetime, window_days: int = EDIT_WINDOW_DAYS) -> date:
    """Oldest calendar day that is still inside the edit window."""
    today = now.date() if isinstance(now, datetime) else now
    return today - timedelta(days=window_days)


def can_edit(
    entry: Any,
    identity: Optional[Identity],
    now: date | datetime,
    window_days: int = EDIT_WINDOW_DAYS,
) -> bool:
    """Whether ``identity`` may edit or delete ``entry`` at ``now``.

    Admins may always. Supervisors only for their own entries dated within
    the last ``window_days`` days, boundary day included. Anything that
    cannot be decided (no identity, no owner, unparseable date) is refused.
    """
    if identity is None:
        return False
    if is_admin(identity):
        return True
    owner = getattr(entry, "username", None)
    if not owner or owner != identity.username:
        return False
    entry_date = from_storage_string(getattr(entry, "date", None))
    if entry_date is None:
        return False
    return entry_date >= edit_cutoff(now, window_days)


def visible_entries(entries: Iterable[Any], identity: Optional[Identity]) -> List[Any]:
    """Entries shown in the audit view: all for admins, own rows otherwise."""
    if identity is None:
        return []
    if is_admin(identity):
        return list(entries)
    return [e for e in entries if getattr(e, "username", None) == identity.username]


__all__ = [
    "AdminIdentity",
    "SupervisorIdentity",
    "Identity",
    "EDIT_WINDOW_DAYS",
    "is_admin",
    "edit_cutoff",
    "can_edit",
    "visible_entries",
]
