# backend/wsgi.py
from fuelpass import create_app

app = create_app()
