# devtrack/modules/auth/security.py
from __future__ import annotations

from functools import wraps
from typing import Any, Optional

from flask import session, redirect, url_for, request, flash, g

from .models import get_user_by_id


# ----------------------------- user lookup -----------------------------

def _row_to_user(row: Any) -> Optional[dict]:
    if not row:
        return None
    return {
        "id": row["id"],
        "username": row["username"],
        "is_admin": bool(row["is_admin"]),
    }

def current_user() -> Optional[dict]:
    """Resolve the logged-in user from the session (cached per request)."""
    if "_cu" in g:
        return g._cu
    uid = session.get("uid")
    g._cu = _row_to_user(get_user_by_id(uid)) if uid else None
    return g._cu

def login_user(row: Any) -> dict:
    """Persist identity to the session."""
    session["uid"] = row["id"]
    session["username"] = row["username"]
    session.permanent = True
    g._cu = _row_to_user(row)
    return g._cu

def logout_user() -> None:
    session.clear()
    g.pop("_cu", None)


# ------------------------------- decorators ----------------------------

def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_user():
            flash("Please sign in to continue.", "warning")
            return redirect(url_for("auth.login", next=request.path))
        return view(*args, **kwargs)
    return wrapped

def require_admin(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        u = current_user()
        if not u:
            flash("Please sign in to continue.", "warning")
            return redirect(url_for("auth.login", next=request.path))
        if not u.get("is_admin"):
            flash("Administrator access required.", "danger")
            return redirect(url_for("devices.index"))
        return view(*args, **kwargs)
    return wrapped
