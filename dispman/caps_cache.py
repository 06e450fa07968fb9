import json
from datetime import datetime, timezone
from .db import db_conn


def get_cached_capabilities(identity: str) -> str | None:
    with db_conn() as conn:
        row = conn.execute("SELECT capabilities_raw FROM ddc_cache WHERE id = ?", (identity,)).fetchone()
    if not row:
        return None
    return row[0]


def store_capabilities(identity: str, display_info: dict, raw: str) -> None:
    now = datetime.now(timezone.utc).isoformat()
    info = {k: v for k, v in display_info.items() if k != "raw"}
    with db_conn() as conn:
        conn.execute(
            "INSERT INTO ddc_cache (id, display_identity_json, capabilities_raw, updated_at) VALUES (?, ?, ?, ?) ON CONFLICT(id) DO UPDATE SET display_identity_json = excluded.display_identity_json, capabilities_raw = excluded.capabilities_raw, updated_at = excluded.updated_at",
            (identity, json.dumps(info), raw, now),
        )
        conn.commit()


def clear_capabilities(identity: str | None = None) -> None:
    with db_conn() as conn:
        if identity is None:
            conn.execute("DELETE FROM ddc_cache")
        else:
            conn.execute("DELETE FROM ddc_cache WHERE id = ?", (identity,))
        conn.commit()
