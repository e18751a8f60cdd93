"""
asgi.py -- ASGI entry point for UserDesk.

api/main.py builds the application; this module only re-exports it under the
name servers expect, so deployment config never has to know the package layout.

Run with:  uvicorn asgi:app --reload
"""

from api.main import app

__all__ = ["app"]
