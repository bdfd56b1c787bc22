"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from ampscan.api import app

    uvicorn ampscan.api:app --reload
"""

from ampscan.api.app import app

__all__ = ["app"]
