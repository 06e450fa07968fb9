import os
from dataclasses import dataclass


def _default_data_dir() -> str:
    base = os.getenv("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    return os.path.join(base, "dispman")


_DATA_DIR = os.getenv("DATA_DIR", _default_data_dir())


@dataclass(frozen=True)
class AppConfig:
    db_path: str = os.getenv("DB_PATH", os.path.join(_DATA_DIR, "dispman.db"))
    log_level: str = os.getenv("LOG_LEVEL", "WARNING")

    bind_host: str = os.getenv("BIND_HOST", "127.0.0.1")
    bind_port: int = int(os.getenv("BIND_PORT", "5000"))
    auth_token: str | None = os.getenv("AUTH_TOKEN")

    ddcutil_path: str = os.getenv("DDCUTIL_PATH", "/usr/bin/ddcutil")
    ddc_timeout_ms: int = int(os.getenv("DDC_TIMEOUT_MS", "2000"))
    ddc_capabilities_timeout_ms: int = int(os.getenv("DDC_CAPABILITIES_TIMEOUT_MS", "10000"))
    ddc_retry_count: int = int(os.getenv("DDC_RETRY_COUNT", "1"))
    ddc_coalesce_ms: int = int(os.getenv("DDC_COALESCE_MS", "75"))


CONFIG = AppConfig()
