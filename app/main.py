"""Repo-root Uvicorn entrypoint.

Allows running the AI functions service from the repo root:

    uvicorn app.main:app --reload

The application itself (routers, error handlers, CORS) lives in
`backend/app/main.py`.
"""

from backend.app.main import app  # re-export
