import hashlib
import hmac
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request
from itsdangerous import BadSignature, URLSafeSerializer
from sqlalchemy.orm import Session

from production_tracker.core.config import get_settings
from production_tracker.core.permissions import Identity, is_admin
from production_tracker.db.session import get_db

SESSION_COOKIE = "ptr_session"
_ITERATIONS = 260_000

ser = URLSafeSerializer(get_settings().secret_key, salt="session")


def hash_password(pw: str) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", pw.encode("utf-8"), salt.encode("ascii"), _ITERATIONS)
    return f"pbkdf2_sha256${_ITERATIONS}${salt}${digest.hex()}"


def verify_password(pw: str, hashed: str) -> bool:
    try:
        algorithm, iterations, salt, expected = hashed.split("$")
        rounds = int(iterations)
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    digest = hashlib.pbkdf2_hmac("sha256", pw.encode("utf-8"), salt.encode("ascii"), rounds)
    return hmac.compare_digest(digest.hex(), expected)


def make_session_token(username: str) -> str:
    return ser.dumps({"username": username})


def read_session_token(token: Optional[str]) -> Optional[str]:
    if not token:
        return None
    try:
        data = ser.loads(token)
    except BadSignature:
        return None
    if not isinstance(data, dict):
        return None
    return data.get("username") or None


def current_identity(request: Request, db: Session = Depends(get_db)) -> Optional[Identity]:
    from production_tracker.services.users import get_user, to_identity

    username = read_session_token(request.cookies.get(SESSION_COOKIE))
    if not username:
        return None
    user = get_user(db, username)
    return to_identity(user) if user else None


def require_identity(identity: Optional[Identity] = Depends(current_identity)) -> Identity:
    if identity is None:
        raise HTTPException(401, "Not logged in")
    return identity


def require_admin(identity: Identity = Depends(require_identity)) -> Identity:
    if not is_admin(identity):
        raise HTTPException(403, "You don't have permission to access this page")
    return identity
