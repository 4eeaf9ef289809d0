from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import wraps
from typing import Optional

from flask import current_app, g, jsonify, request
from jose import JWTError, jwt

from ..core.enums import Role


@dataclass(frozen=True)
class CurrentUser:
    """Identity decoded from the bearer token."""

    employee_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def issue_token(
    *,
    secret: str,
    employee_id: int,
    role: Role,
    algorithm: str = "HS256",
    expires_minutes: int = 60 * 24,
) -> str:
    now = datetime.now(timezone.utc)
    claims = {
        "sub": str(employee_id),
        "role": role.value,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(claims, secret, algorithm=algorithm)


def decode_token(token: str, *, secret: str, algorithm: str = "HS256") -> Optional[CurrentUser]:
    try:
        claims = jwt.decode(token, secret, algorithms=[algorithm])
        return CurrentUser(employee_id=int(claims["sub"]), role=Role(claims["role"]))
    except (JWTError, KeyError, ValueError):
        return None


def _user_from_request() -> Optional[CurrentUser]:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return decode_token(
        header[len("Bearer "):].strip(),
        secret=current_app.config["SECRET_KEY"],
        algorithm=current_app.config.get("TOKEN_ALGORITHM", "HS256"),
    )


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        user = _user_from_request()
        if user is None:
            return jsonify({"success": False, "message": "Authentication required"}), 401
        g.current_user = user
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        user = _user_from_request()
        if user is None:
            return jsonify({"success": False, "message": "Authentication required"}), 401
        if not user.is_admin:
            return jsonify({"success": False, "message": "Admin access required"}), 403
        g.current_user = user
        return view(*args, **kwargs)

    return wrapper
