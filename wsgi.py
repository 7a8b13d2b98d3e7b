# wsgi.py
# Application instance for WSGI servers (gunicorn, waitress).
from devtrack.app import create_app

application = create_app()
