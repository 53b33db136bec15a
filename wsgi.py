"""WSGI entry point for production deployment (gunicorn wsgi:app)."""

import sys
from pathlib import Path

BASE = Path(__file__).resolve().parent
sys.path.insert(0, str(BASE))

from rate_manager import load_settings
from server import create_app

app = create_app(load_settings())
