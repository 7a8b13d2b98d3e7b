# devtrack/modules/auth/views.py
"""
Authentication routes
"""

from flask import Blueprint, render_template, request, redirect, url_for, flash

from devtrack.core.errors import log_security_event
from .models import get_user_by_username, verify_password, record_audit
from .security import current_user, login_user, logout_user

bp = Blueprint("auth", __name__, url_prefix="/auth")


def _safe_next(target: str) -> str:
    # Only local paths; never bounce to another host.
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return url_for("devices.index")


@bp.route("/login", methods=["GET", "POST"])
def login():
    """Login page and handler"""
    if request.method == "POST":
        username = (request.form.get("username") or "").strip()
        password = request.form.get("password") or ""

        if not username or not password:
            flash("Username and password are required", "warning")
            return render_template("auth/login.html"), 400

        user = get_user_by_username(username)

        if not user or not verify_password(user, password):
            flash("Invalid username or password", "danger")
            log_security_event("failed_login", f"Failed login attempt for: {username}")
            record_audit(None, "failed_login", "auth", f"Failed login attempt for: {username}")
            return render_template("auth/login.html"), 401

        cu = login_user(user)
        flash(f"Welcome back, {cu['username']}!", "success")
        record_audit(cu, "login", "auth", f"User logged in: {username}")

        return redirect(_safe_next(request.args.get("next", "")))

    if current_user():
        return redirect(url_for("devices.index"))
    return render_template("auth/login.html")


@bp.route("/logout")
def logout():
    """Logout handler"""
    cu = current_user()
    if cu:
        record_audit(cu, "logout", "auth", f"User logged out: {cu['username']}")

    logout_user()
    flash("You have been logged out", "info")
    return redirect(url_for("auth.login"))
