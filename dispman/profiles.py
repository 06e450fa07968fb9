import json
import logging
from datetime import datetime, timezone
from ulid import ULID
from .db import db_conn
from .ddc.display import Display
from .ddc.vcp import VcpFeature
from .errors import DisplayError

logger = logging.getLogger(__name__)

PROFILE_CODES = (
    VcpFeature.BRIGHTNESS.code,
    VcpFeature.CONTRAST.code,
    VcpFeature.INPUT_SOURCE.code,
    VcpFeature.VOLUME.code,
)

_COLUMNS = "id, name, data_json, is_default, created_at, updated_at"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_profile(row) -> dict:
    return {
        "id": row[0],
        "name": row[1],
        "data": json.loads(row[2]),
        "is_default": bool(row[3]),
        "created_at": row[4],
        "updated_at": row[5],
    }


def list_profiles() -> list[dict]:
    with db_conn() as conn:
        rows = conn.execute(f"SELECT {_COLUMNS} FROM profiles ORDER BY name").fetchall()
    return [_row_to_profile(row) for row in rows]


def create_profile(name: str, data: dict) -> dict:
    profile_id = str(ULID())
    now = _now()
    with db_conn() as conn:
        conn.execute(
            "INSERT INTO profiles (id, name, data_json, is_default, created_at, updated_at) VALUES (?, ?, ?, 0, ?, ?)",
            (profile_id, name, json.dumps(data), now, now),
        )
        conn.commit()
    return {"id": profile_id, "name": name, "data": data, "is_default": False, "created_at": now, "updated_at": now}


def save_profile(name: str, data: dict) -> dict:
    """Create ``name`` or replace the data of the existing profile with that name."""
    existing = get_profile_by_name(name)
    if existing is None:
        return create_profile(name, data)
    update_profile(existing["id"], None, data)
    return get_profile(existing["id"])


def update_profile(profile_id: str, name: str | None, data: dict | None) -> None:
    now = _now()
    with db_conn() as conn:
        if name is not None:
            conn.execute("UPDATE profiles SET name = ?, updated_at = ? WHERE id = ?", (name, now, profile_id))
        if data is not None:
            conn.execute("UPDATE profiles SET data_json = ?, updated_at = ? WHERE id = ?", (json.dumps(data), now, profile_id))
        conn.commit()


def delete_profile(profile_id: str) -> None:
    with db_conn() as conn:
        conn.execute("DELETE FROM profiles WHERE id = ?", (profile_id,))
        conn.commit()


def set_default_profile(profile_id: str) -> None:
    with db_conn() as conn:
        conn.execute("UPDATE profiles SET is_default = 0")
        conn.execute("UPDATE profiles SET is_default = 1 WHERE id = ?", (profile_id,))
        conn.commit()


def get_profile(profile_id: str) -> dict | None:
    with db_conn() as conn:
        row = conn.execute(f"SELECT {_COLUMNS} FROM profiles WHERE id = ?", (profile_id,)).fetchone()
    if not row:
        return None
    return _row_to_profile(row)


def get_profile_by_name(name: str) -> dict | None:
    with db_conn() as conn:
        row = conn.execute(f"SELECT {_COLUMNS} FROM profiles WHERE name = ?", (name,)).fetchone()
    if not row:
        return None
    return _row_to_profile(row)


def load_default_or_last() -> str | None:
    with db_conn() as conn:
        row = conn.execute("SELECT id FROM profiles WHERE is_default = 1 LIMIT 1").fetchone()
        if row:
            return row[0]
        row = conn.execute("SELECT id FROM profiles ORDER BY updated_at DESC LIMIT 1").fetchone()
        if row:
            return row[0]
    return None


def capture_settings(displays: list[Display], codes=PROFILE_CODES) -> dict:
    """Read ``codes`` from every display into a profile settings mapping.

    Codes a display fails to report are left out of its entry.
    """
    settings: dict[str, list[list[int]]] = {}
    for display in displays:
        pairs = []
        for code in codes:
            try:
                pairs.append([code, display.get_vcp_feature(code)])
            except DisplayError as exc:
                logger.info("skipping 0x%02X on display %s: %s", code, display.id, exc)
        settings[display.name] = pairs
    return settings


def apply_settings(displays: list[Display], settings: dict) -> list[tuple[int, int, str]]:
    """Write stored settings to the displays whose name matches.

    Returns (display id, code, error) for every write that failed.
    """
    failures = []
    for display in displays:
        pairs = settings.get(display.name)
        if not pairs:
            continue
        for code, value in pairs:
            try:
                display.set_vcp_feature(int(code), int(value))
            except (DisplayError, ValueError) as exc:
                logger.warning("failed to set feature 0x%02X on display %s: %s", code, display.id, exc)
                failures.append((display.id, int(code), str(exc)))
    return failures
