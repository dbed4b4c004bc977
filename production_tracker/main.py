from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from sqlalchemy.orm import Session

from production_tracker.auth import (
    SESSION_COOKIE,
    make_session_token,
    require_admin,
    require_identity,
)
from production_tracker.core import aggregates
from production_tracker.core.config import get_settings
from production_tracker.core.dates import display_storage_string, from_storage_string
from production_tracker.core.export import CSV_FILENAME, entries_to_csv, report_context
from production_tracker.core.filters import EntryFilter, filter_entries, resolve_time_frame
from production_tracker.core.logging_config import setup_logging
from production_tracker.core.permissions import Identity, can_edit, is_admin, visible_entries
from production_tracker.core.timezone import now_local, today_local
from production_tracker.db.session import SessionLocal, get_db, init_db
from production_tracker.schemas import (
    ColorUpdate,
    CrewAssignment,
    EntryFields,
    EntryRecord,
    LoginRequest,
    PasswordUpdate,
    ReferenceCreate,
    RegisterRequest,
    UserCreate,
    UserOut,
)
from production_tracker.services import storage, users

logger = logging.getLogger(__name__)

# ---------- Config ----------
BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"
PASSWORD_RULE = "Password must be at least 8 characters and include letters, numbers, and symbols"

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info(f"Starting {settings.app_name} ({settings.app_env})")
    init_db()
    with SessionLocal() as db:
        users.initialize_auth(db)
        storage.initialize_default_data(db)
    yield
    logger.info("Shutting down")


app = FastAPI(title=settings.app_name, lifespan=lifespan)
templates = Jinja2Templates(directory=TEMPLATES_DIR)
templates.env.filters["display_date"] = display_storage_string
templates.env.filters["feet"] = lambda n: f"{int(n):,}"


# ---------- Helpers ----------
def _parse_day(value: Optional[str], name: str) -> Optional[date]:
    if not value:
        return None
    parsed = from_storage_string(value)
    if parsed is None:
        raise HTTPException(400, f"Invalid {name}; use YYYY/MM/DD")
    return parsed


def entry_filter(q: Optional[str] = None, crew: Optional[str] = None, type: Optional[str] = None,
                 since: Optional[str] = None, until: Optional[str] = None) -> EntryFilter:
    try:
        return EntryFilter(search=q, crew=crew, type=type, date_from=since, date_to=until)
    except ValidationError:
        raise HTTPException(400, "Invalid date; use YYYY/MM/DD")


def _entry_json(r: EntryRecord, identity: Identity) -> Dict[str, Any]:
    out = r.model_dump()
    out["display_date"] = display_storage_string(r.date)
    out["editable"] = can_edit(r, identity, now_local(), settings.edit_window_days)
    return out


def _dashboard_selection(db: Session, timeframe: str, start: Optional[str], end: Optional[str],
                         crew: Optional[str], type: Optional[str]) -> Tuple[List[EntryRecord], date, date]:
    try:
        first, last = resolve_time_frame(timeframe, today_local(),
                                         _parse_day(start, "start"), _parse_day(end, "end"))
    except ValueError as e:
        raise HTTPException(400, str(e))
    criteria = EntryFilter(crew=crew, type=type, date_from=first, date_to=last)
    return filter_entries(storage.list_entries(db), criteria), first, last


def _load_entry_for_change(db: Session, entry_id: int, identity: Identity) -> EntryRecord:
    r = storage.get_entry(db, entry_id)
    if not r:
        raise HTTPException(404, "Not found")
    if not can_edit(r, identity, now_local(), settings.edit_window_days):
        raise HTTPException(403, "Entries can only be changed by their author within "
                                 f"{settings.edit_window_days} days")
    return r


def _check_reference_names(db: Session, payload: EntryFields) -> None:
    if payload.crew not in storage.crew_names(db):
        raise HTTPException(400, f"Unknown crew: {payload.crew}")
    if payload.type not in storage.type_names(db):
        raise HTTPException(400, f"Unknown type: {payload.type}")


def _set_session(resp: Response, username: str) -> None:
    resp.set_cookie(SESSION_COOKIE, make_session_token(username), httponly=True, samesite="lax")


# ---------- Session ----------
@app.post("/api/login")
def api_login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = users.authenticate(db, payload.username.strip(), payload.password)
    if not user:
        raise HTTPException(401, "Invalid username or password")
    resp = JSONResponse(UserOut.model_validate(user).model_dump())
    _set_session(resp, user.username)
    return resp


@app.post("/api/logout")
def api_logout():
    resp = JSONResponse({"ok": True})
    resp.delete_cookie(SESSION_COOKIE)
    return resp


@app.post("/api/register")
def api_register(payload: RegisterRequest, db: Session = Depends(get_db)):
    if not settings.allow_registration:
        raise HTTPException(403, "Registration is disabled")
    if payload.password != payload.confirm_password:
        raise HTTPException(400, "Passwords don't match")
    if not users.is_password_valid(payload.password):
        raise HTTPException(400, PASSWORD_RULE)
    user = users.register_user(db, payload.username, payload.password, payload.crew)
    if not user:
        raise HTTPException(409, "Username already exists")
    resp = JSONResponse(UserOut.model_validate(user).model_dump(), status_code=201)
    _set_session(resp, user.username)
    return resp


@app.get("/api/me")
def api_me(identity: Identity = Depends(require_identity)) -> Dict[str, Any]:
    return identity.model_dump()


# ---------- Entries ----------
@app.get("/api/entries")
def api_entries(criteria: EntryFilter = Depends(entry_filter),
                identity: Identity = Depends(require_identity),
                db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    rows = filter_entries(storage.list_entries(db), criteria)
    return [_entry_json(r, identity) for r in rows]


@app.get("/api/audit")
def api_audit(criteria: EntryFilter = Depends(entry_filter),
              identity: Identity = Depends(require_identity),
              db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    rows = filter_entries(visible_entries(storage.list_entries(db), identity), criteria)
    return [_entry_json(r, identity) for r in rows]


@app.get("/api/entries/{entry_id}")
def api_get_entry(entry_id: int, identity: Identity = Depends(require_identity),
                  db: Session = Depends(get_db)) -> Dict[str, Any]:
    r = storage.get_entry(db, entry_id)
    if not r:
        raise HTTPException(404, "Not found")
    return _entry_json(r, identity)


@app.post("/api/entries", status_code=201)
def api_create_entry(payload: EntryFields, identity: Identity = Depends(require_identity),
                     db: Session = Depends(get_db)) -> Dict[str, Any]:
    _check_reference_names(db, payload)
    record = EntryRecord(username=identity.username, **payload.model_dump())
    if not storage.insert_entry(db, record):
        raise HTTPException(502, "Failed to save entry")
    return {"ok": True}


@app.patch("/api/entries/{entry_id}")
def api_update_entry(entry_id: int, payload: EntryFields,
                     identity: Identity = Depends(require_identity),
                     db: Session = Depends(get_db)) -> Dict[str, Any]:
    _load_entry_for_change(db, entry_id, identity)
    _check_reference_names(db, payload)
    if not storage.update_entry(db, entry_id, payload.model_dump()):
        raise HTTPException(502, "Failed to update entry")
    updated = storage.get_entry(db, entry_id)
    if not updated:
        raise HTTPException(404, "Not found")
    return _entry_json(updated, identity)


@app.delete("/api/entries/{entry_id}")
def api_delete_entry(entry_id: int, identity: Identity = Depends(require_identity),
                     db: Session = Depends(get_db)) -> Dict[str, Any]:
    _load_entry_for_change(db, entry_id, identity)
    if not storage.delete_entry(db, entry_id):
        raise HTTPException(502, "Failed to delete entry")
    return {"ok": True}


# ---------- Dashboard ----------
@app.get("/api/dashboard")
def api_dashboard(timeframe: str = "month", start: Optional[str] = None, end: Optional[str] = None,
                  crew: Optional[str] = None, type: Optional[str] = None,
                  identity: Identity = Depends(require_identity),
                  db: Session = Depends(get_db)) -> Dict[str, Any]:
    rows, first, last = _dashboard_selection(db, timeframe, start, end, crew, type)
    width = settings.bucket_width
    out: Dict[str, Any] = {
        "start": first.isoformat(),
        "end": last.isoformat(),
        "summary": aggregates.summarize(rows, first, last).to_dict(),
        "by_crew": aggregates.sum_by_crew(rows),
        "by_type": aggregates.sum_by_type(rows),
        "by_weekday": aggregates.average_by_weekday(rows),
        "daily": aggregates.daily_series(rows, first, last),
        "weekly": aggregates.weekly_trend(rows),
        "crew_type": aggregates.crew_type_matrix(rows),
        "crew_comparison": aggregates.crew_comparison(rows, storage.crew_names(db)),
        "active_crews": {"active": aggregates.active_crews(rows), "total": len(storage.crew_names(db))},
        "distribution": aggregates.count_by_bucket(rows, width),
        "feet_by_bucket": aggregates.sum_by_bucket(rows, width),
    }
    if is_admin(identity):
        out["by_user"] = aggregates.sum_by_user(rows)
    return out


# ---------- CSV Export / print report ----------
@app.get("/api/export.csv")
def export_csv(timeframe: str = "month", start: Optional[str] = None, end: Optional[str] = None,
               crew: Optional[str] = None, type: Optional[str] = None,
               identity: Identity = Depends(require_identity),
               db: Session = Depends(get_db)):
    rows, _, _ = _dashboard_selection(db, timeframe, start, end, crew, type)
    resp = Response(entries_to_csv(rows), media_type="text/csv; charset=utf-8")
    resp.headers["Content-Disposition"] = f"attachment; filename={CSV_FILENAME}"
    return resp


@app.get("/report", response_class=HTMLResponse)
def print_report(request: Request, timeframe: str = "month", start: Optional[str] = None,
                 end: Optional[str] = None, crew: Optional[str] = None, type: Optional[str] = None,
                 identity: Identity = Depends(require_identity),
                 db: Session = Depends(get_db)):
    rows, first, last = _dashboard_selection(db, timeframe, start, end, crew, type)
    ctx = report_context(rows, first, last)
    ctx["app_name"] = settings.app_name
    return templates.TemplateResponse(request, "report.html", ctx)


# ---------- Crews / types ----------
def _add_reference(kind: str, names: List[str], payload: ReferenceCreate, add) -> Dict[str, Any]:
    if payload.name in names:
        raise HTTPException(409, f"This {kind} already exists")
    if not add(payload.name, payload.color):
        raise HTTPException(502, f"Failed to add {kind}")
    return {"ok": True, "name": payload.name, "color": payload.color}


@app.get("/api/crews")
def api_crews(identity: Identity = Depends(require_identity), db: Session = Depends(get_db)):
    return [c.model_dump() for c in storage.list_crews(db)]


@app.post("/api/crews", status_code=201)
def api_add_crew(payload: ReferenceCreate, identity: Identity = Depends(require_admin),
                 db: Session = Depends(get_db)):
    return _add_reference("crew", storage.crew_names(db), payload,
                          lambda name, color: storage.add_crew(db, name, color))


@app.patch("/api/crews/{name}")
def api_recolor_crew(name: str, payload: ColorUpdate, identity: Identity = Depends(require_admin),
                     db: Session = Depends(get_db)):
    if name not in storage.crew_names(db):
        raise HTTPException(404, "Crew not found")
    if not storage.update_crew_color(db, name, payload.color):
        raise HTTPException(502, "Failed to update crew color")
    return {"ok": True, "name": name, "color": payload.color}


@app.delete("/api/crews/{name}")
def api_remove_crew(name: str, identity: Identity = Depends(require_admin),
                    db: Session = Depends(get_db)):
    if name not in storage.crew_names(db):
        raise HTTPException(404, "Crew not found")
    if not storage.remove_crew(db, name):
        raise HTTPException(502, "Failed to remove crew")
    return {"ok": True}


@app.get("/api/types")
def api_types(identity: Identity = Depends(require_identity), db: Session = Depends(get_db)):
    return [t.model_dump() for t in storage.list_types(db)]


@app.post("/api/types", status_code=201)
def api_add_type(payload: ReferenceCreate, identity: Identity = Depends(require_admin),
                 db: Session = Depends(get_db)):
    return _add_reference("type", storage.type_names(db), payload,
                          lambda name, color: storage.add_type(db, name, color))


@app.patch("/api/types/{name}")
def api_recolor_type(name: str, payload: ColorUpdate, identity: Identity = Depends(require_admin),
                     db: Session = Depends(get_db)):
    if name not in storage.type_names(db):
        raise HTTPException(404, "Type not found")
    if not storage.update_type_color(db, name, payload.color):
        raise HTTPException(502, "Failed to update type color")
    return {"ok": True, "name": name, "color": payload.color}


@app.delete("/api/types/{name}")
def api_remove_type(name: str, identity: Identity = Depends(require_admin),
                    db: Session = Depends(get_db)):
    if name not in storage.type_names(db):
        raise HTTPException(404, "Type not found")
    if not storage.remove_type(db, name):
        raise HTTPException(502, "Failed to remove type")
    return {"ok": True}


# ---------- Users ----------
@app.get("/api/users")
def api_users(identity: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    return [UserOut.model_validate(u).model_dump() for u in users.list_users(db)]


@app.post("/api/users", status_code=201)
def api_create_user(payload: UserCreate, identity: Identity = Depends(require_admin),
                    db: Session = Depends(get_db)):
    username = payload.username
    if not users.is_password_valid(payload.password):
        raise HTTPException(400, PASSWORD_RULE)
    if users.get_user(db, username):
        raise HTTPException(409, "Username already exists")
    if not users.create_user(db, username, payload.password, payload.role, payload.crew):
        raise HTTPException(502, "Failed to create user")
    return {"ok": True, "username": username}


@app.delete("/api/users/{username}")
def api_delete_user(username: str, identity: Identity = Depends(require_admin),
                    db: Session = Depends(get_db)):
    if username == identity.username:
        raise HTTPException(400, "You cannot delete your own account")
    if not users.get_user(db, username):
        raise HTTPException(404, "User not found")
    if not users.delete_user(db, username):
        raise HTTPException(502, "Failed to delete user")
    return {"ok": True}


@app.patch("/api/users/{username}/password")
def api_change_password(username: str, payload: PasswordUpdate,
                        identity: Identity = Depends(require_admin),
                        db: Session = Depends(get_db)):
    if payload.new_password != payload.confirm_password:
        raise HTTPException(400, "Passwords don't match")
    if not users.is_password_valid(payload.new_password):
        raise HTTPException(400, PASSWORD_RULE)
    if not users.get_user(db, username):
        raise HTTPException(404, "User not found")
    if not users.update_user_password(db, username, payload.new_password):
        raise HTTPException(502, "Failed to update password")
    return {"ok": True}


@app.patch("/api/users/{username}/crew")
def api_assign_crew(username: str, payload: CrewAssignment,
                    identity: Identity = Depends(require_admin),
                    db: Session = Depends(get_db)):
    if not users.get_user(db, username):
        raise HTTPException(404, "User not found")
    if not users.update_user_crew(db, username, payload.crew):
        raise HTTPException(502, "Failed to update user crew")
    return {"ok": True, "username": username, "crew": payload.crew}


# ---------- Health / favicon ----------
@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "healthy", "app": settings.app_name}


@app.get("/favicon.ico")
def favicon():
    return Response(status_code=204)


def run() -> None:
    import uvicorn

    uvicorn.run("production_tracker.main:app", host=settings.host, port=settings.port)
