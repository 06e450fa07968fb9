"""Parsers for the text printed by the ddcutil binary."""
import re
from dataclasses import dataclass


@dataclass
class VcpValue:
    code: int
    cur: int | None
    max: int | None


_VCP_RE = re.compile(r"current value =\s*(\d+), max value =\s*(\d+)")
_VCP_SL_RE = re.compile(r"\(sl=0x([0-9A-Fa-f]+)\)")
_VCP_BRIEF_RE = re.compile(r"VCP\s+([0-9A-Fa-f]{2})\s+C\s+(\d+)\s+(\d+)")
_VCP_BRIEF_NC_RE = re.compile(r"VCP\s+([0-9A-Fa-f]{2})\s+SNC\s+x([0-9A-Fa-f]+)")
_CAPS_RE = re.compile(r"^\s*Unparsed capabilities string:\s*(.*?)\s*$", re.MULTILINE)


def parse_getvcp(output: str, code: int) -> VcpValue:
    match = _VCP_RE.search(output)
    if match:
        return VcpValue(code=code, cur=int(match.group(1)), max=int(match.group(2)))
    match = _VCP_BRIEF_RE.search(output)
    if match:
        return VcpValue(code=code, cur=int(match.group(2)), max=int(match.group(3)))
    match = _VCP_BRIEF_NC_RE.search(output) or _VCP_SL_RE.search(output)
    if match:
        return VcpValue(code=code, cur=int(match.group(match.lastindex), 16), max=None)
    return VcpValue(code=code, cur=None, max=None)


def parse_detect(output: str) -> list[dict]:
    displays: list[dict] = []
    current: dict | None = None
    for line in output.splitlines():
        line = line.strip()
        if line.startswith("Display") or line.startswith("Invalid display"):
            if current:
                displays.append(current)
            current = None
            if line.startswith("Invalid display"):
                continue
            parts = line.split()
            index = parts[1] if len(parts) > 1 else None
            current = {"raw": [], "index": index}
        if current is not None:
            current["raw"].append(line)
            if line.startswith("I2C bus:"):
                raw_bus = line.split(":", 1)[1].strip()
                if raw_bus.startswith("/dev/i2c-"):
                    raw_bus = raw_bus.split("/dev/i2c-")[-1]
                current["bus"] = raw_bus
            if line.startswith("EDID synopsis:"):
                current["edid"] = line.split(":", 1)[1].strip()
            if line.startswith("Monitor:"):
                # --brief prints "Monitor: MFG:MODEL:SERIAL"
                parts = line.split(":", 1)[1].strip().split(":")
                if len(parts) == 3:
                    current.setdefault("manufacturer", parts[0])
                    current.setdefault("model", parts[1])
                    current.setdefault("serial", parts[2])
            if line.startswith("Mfg id:"):
                current["manufacturer"] = line.split(":", 1)[1].strip()
            if line.startswith("Model:"):
                current["model"] = line.split(":", 1)[1].strip()
            if line.startswith("Serial number:"):
                current["serial"] = line.split(":", 1)[1].strip()
            if line.startswith("DRM connector:"):
                current["connector"] = line.split(":", 1)[1].strip()
    if current:
        displays.append(current)
    return displays


def parse_capabilities_output(output: str) -> str:
    """Pull the raw capabilities string out of ``ddcutil capabilities --verbose``."""
    match = _CAPS_RE.search(output)
    if match:
        return match.group(1)
    stripped = output.strip()
    if stripped.startswith("(") and stripped.endswith(")"):
        return stripped
    return ""
