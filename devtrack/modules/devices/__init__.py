"""
Devices module initialization.
Create the blueprint HERE before importing views.
"""

from flask import Blueprint

bp = Blueprint("devices", __name__, url_prefix="/devices")

from . import views  # noqa: E402,F401
