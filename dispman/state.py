from __future__ import annotations
import json
import time
from dataclasses import dataclass, field


def now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


@dataclass
class DdcState:
    status: str = "unavailable"
    display: dict = field(default_factory=dict)
    supported: list[str] = field(default_factory=list)
    values: dict = field(default_factory=dict)
    lastError: str | None = None
    lastOkAt: str | None = None
    lastCommandMs: int | None = None


@dataclass
class SystemState:
    activeProfileId: str | None = None
    displays: dict[str, DdcState] = field(default_factory=dict)
    meta: dict = field(default_factory=lambda: {"version": 1, "updatedAt": now_iso()})

    def to_dict(self) -> dict:
        return json.loads(json.dumps(self, default=lambda o: o.__dict__))

    def bump(self) -> None:
        self.meta["version"] += 1
        self.meta["updatedAt"] = now_iso()
