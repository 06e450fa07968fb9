import os
import sqlite3
from contextlib import contextmanager
from .config import CONFIG


SCHEMA = """
CREATE TABLE IF NOT EXISTS profiles (
  id TEXT PRIMARY KEY,
  name TEXT UNIQUE NOT NULL,
  data_json TEXT NOT NULL,
  is_default INTEGER NOT NULL DEFAULT 0,
  created_at TEXT NOT NULL,
  updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS app_state (
  key TEXT PRIMARY KEY,
  value_json TEXT NOT NULL,
  updated_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS ddc_cache (
  id TEXT PRIMARY KEY,
  display_identity_json TEXT NOT NULL,
  capabilities_raw TEXT NOT NULL,
  updated_at TEXT NOT NULL
);
"""


def init_db() -> None:
    directory = os.path.dirname(CONFIG.db_path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(CONFIG.db_path)
    try:
        conn.executescript(SCHEMA)
        conn.commit()
    finally:
        conn.close()


@contextmanager
def db_conn():
    init_db()
    conn = sqlite3.connect(CONFIG.db_path)
    try:
        yield conn
    finally:
        conn.close()
