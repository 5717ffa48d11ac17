"""
Repository: SQL operations for `forecast_cache`.

This file contains only DB interaction code and implements the
`ForecastStore` interface used by `forecast_cache.ForecastCache`. Keep
cache rules (sentinel handling, locking) out of this module.

Important notes:
- One table holds all three cache tables, discriminated by `kind`.
- Values are stored as JSONB via `Jsonb`.
- Every mutating call commits before returning (write-through).
- psycopg errors are re-raised as `CacheStoreError` so the cache can
  degrade to memory-only operation.
"""

from typing import Any

import psycopg
from psycopg.types.json import Jsonb

from db import get_conn
from errors import CacheStoreError
from forecast_cache import TABLES, Snapshot

DDL = '''
CREATE TABLE IF NOT EXISTS forecast_cache (
    kind TEXT NOT NULL,
    day_key TEXT NOT NULL,
    value JSONB NOT NULL,
    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT now(),
    PRIMARY KEY (kind, day_key)
);
'''


class PostgresForecastStore:
    """DB access only. No business logic here.

    Responsibilities:
    - Load every row once into a `{kind: {day_key: value}}` snapshot
    - Upsert / delete single rows and commit per call
    """

    def __init__(self, db_url: str | None = None):
        self.db_url = db_url

    def load(self) -> Snapshot:
        snapshot: Snapshot = {t: {} for t in TABLES}
        try:
            with get_conn(self.db_url) as conn:
                with conn.cursor() as cur:
                    cur.execute("SELECT kind, day_key, value FROM forecast_cache")
                    for kind, key, value in cur.fetchall():
                        if kind in snapshot:
                            snapshot[kind][key] = value
        except psycopg.Error as e:
            raise CacheStoreError(f"load failed: {e}") from e
        return snapshot

    def put(self, table: str, key: str, value: Any) -> None:
        try:
            with get_conn(self.db_url) as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "INSERT INTO forecast_cache (kind, day_key, value) VALUES (%s, %s, %s) "
                        "ON CONFLICT (kind, day_key) DO UPDATE "
                        "SET value = EXCLUDED.value, updated_at = now()",
                        (table, key, Jsonb(value)),
                    )
                conn.commit()
        except psycopg.Error as e:
            raise CacheStoreError(f"put {table}/{key} failed: {e}") from e

    def delete(self, table: str, key: str) -> None:
        try:
            with get_conn(self.db_url) as conn:
                with conn.cursor() as cur:
                    cur.execute(
                        "DELETE FROM forecast_cache WHERE kind=%s AND day_key=%s",
                        (table, key),
                    )
                conn.commit()
        except psycopg.Error as e:
            raise CacheStoreError(f"delete {table}/{key} failed: {e}") from e

    def clear(self) -> None:
        try:
            with get_conn(self.db_url) as conn:
                with conn.cursor() as cur:
                    cur.execute("DELETE FROM forecast_cache")
                conn.commit()
        except psycopg.Error as e:
            raise CacheStoreError(f"clear failed: {e}") from e

    def ensure_schema(self) -> None:
        with get_conn(self.db_url) as conn:
            with conn.cursor() as cur:
                cur.execute(DDL)
            conn.commit()
