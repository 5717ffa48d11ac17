"""
Database connection helper.

The Postgres-backed forecast store (`repo_forecasts.PostgresForecastStore`)
is the only caller. Each call opens a new connection; the cache loads once
and then writes through, so connection churn is limited to mutations.

Usage:
    from db import get_conn
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT 1;")
"""

import psycopg
from settings import settings


def get_conn(db_url: str | None = None):
    """Return a new psycopg connection using `settings.db_url`.

    A short `connect_timeout` keeps a missing database from stalling
    cache construction; the cache falls back to memory on failure.
    """

    return psycopg.connect(db_url or settings.db_url, connect_timeout=5)
