"""
WSGI entry point for production servers

Point the server at `wsgi:application`. SECRET_KEY and DATABASE_URL must be
set in the environment (or in .env next to config.py).
"""

import os

os.environ.setdefault('FLASK_ENV', 'production')

from ledgerdesk import create_app

application = create_app(os.environ['FLASK_ENV'])
