"""
asgi.py -- ASGI entry point for Gatehouse.

Run with:  uvicorn asgi:app --reload
           python main.py serve

api/main.py owns the app; this module is the stable import path process
managers point at, so the app module can move without touching deployments.
"""

from api.main import app

__all__ = ["app"]
