# devtrack/core/ui.py
"""
UI context processor - injects global variables into templates
"""

import os

from devtrack.modules.auth.security import current_user

APP_VERSION = os.environ.get("APP_VERSION", "0.1.0")


def inject_globals():
    """Inject the signed-in user and app metadata into all templates."""
    cu = current_user()
    return {
        "cu": cu,
        "is_admin": bool(cu and cu.get("is_admin")),
        "APP_VERSION": APP_VERSION,
    }
