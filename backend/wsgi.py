# backend/wsgi.py
from homebake import create_app

app = create_app()
