from __future__ import annotations
import logging
from dataclasses import dataclass, field

from ..caps_cache import get_cached_capabilities, store_capabilities
from ..errors import DisplayNotFoundError, FeatureNotSupportedError
from .capabilities import CapabilitiesDocument, parse
from .ddcutil import DdcUtil

logger = logging.getLogger(__name__)

MAX_VCP_VALUE = 0xFFFF


@dataclass
class Display:
    id: int
    name: str
    info: dict
    ddcutil: DdcUtil = field(repr=False, compare=False)

    @property
    def target_args(self) -> list[str]:
        if self.info.get("bus"):
            return ["--bus", self.info["bus"]]
        if self.info.get("index"):
            return ["--display", self.info["index"]]
        return []

    @property
    def identity(self) -> str:
        if self.info.get("edid"):
            return f"edid:{self.info['edid']}"
        if self.info.get("model") or self.info.get("serial"):
            return f"model:{self.info.get('model', '')}:{self.info.get('serial', '')}"
        return f"bus:{self.info.get('bus', self.id)}"

    def to_dict(self) -> dict:
        info = {k: v for k, v in self.info.items() if k != "raw"}
        return {"id": self.id, "name": self.name, **info}

    def capabilities(self, refresh: bool = False) -> CapabilitiesDocument:
        raw = None if refresh else get_cached_capabilities(self.identity)
        if raw is None:
            raw, ms = self.ddcutil.capabilities(self.target_args)
            logger.info("read capabilities of display %s in %dms", self.id, ms)
            if raw:
                store_capabilities(self.identity, self.info, raw)
        return parse(raw)

    def get_vcp_feature(self, code: int) -> int:
        value, _ = self.ddcutil.get_vcp(code, self.target_args)
        if value.cur is None:
            raise FeatureNotSupportedError(f"0x{code:02X} not readable on display {self.id}")
        return value.cur

    def set_vcp_feature(self, code: int, value: int) -> None:
        if not 0 <= value <= MAX_VCP_VALUE:
            raise ValueError(f"value {value} out of range for VCP 0x{code:02X}")
        self.ddcutil.set_vcp(code, value, self.target_args)


def _display_name(info: dict) -> str:
    name = info.get("model") or info.get("connector") or f"i2c-{info.get('bus', '?')}"
    if info.get("serial"):
        name = f"{name} ({info['serial']})"
    return name


def enumerate_displays(ddcutil: DdcUtil | None = None) -> list[Display]:
    ddcutil = ddcutil or DdcUtil()
    found, ms = ddcutil.detect()
    logger.info("detected %d display(s) in %dms", len(found), ms)
    return [Display(id=i, name=_display_name(info), info=info, ddcutil=ddcutil) for i, info in enumerate(found, start=1)]


def select_display(displays: list[Display], display_id: int | None) -> Display:
    if not displays:
        raise DisplayNotFoundError("No displays found")
    if display_id is None:
        return displays[0]
    for display in displays:
        if display.id == display_id:
            return display
    raise DisplayNotFoundError(f"Display {display_id} not found")
