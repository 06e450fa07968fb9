import json
from datetime import datetime, timezone
from .db import db_conn


def get_state_value(key: str) -> dict | None:
    with db_conn() as conn:
        row = conn.execute("SELECT value_json FROM app_state WHERE key = ?", (key,)).fetchone()
    if not row:
        return None
    return json.loads(row[0])


def set_state_value(key: str, value: dict) -> None:
    now = datetime.now(timezone.utc).isoformat()
    with db_conn() as conn:
        conn.execute(
            "INSERT INTO app_state (key, value_json, updated_at) VALUES (?, ?, ?) ON CONFLICT(key) DO UPDATE SET value_json = excluded.value_json, updated_at = excluded.updated_at",
            (key, json.dumps(value), now),
        )
        conn.commit()


def get_active_profile_id() -> str | None:
    value = get_state_value("active_profile_id")
    if value and "value" in value:
        return value["value"]
    return None


def set_active_profile_id(profile_id: str) -> None:
    set_state_value("active_profile_id", {"value": profile_id})
