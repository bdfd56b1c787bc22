"""Database layer package.

Public re-exports so callers can write::

    from ampscan.db import get_connection, init_db
"""

from ampscan.db.connection import get_connection
from ampscan.db.migrations import init_db

__all__ = ["get_connection", "init_db"]
