"""MCCS capabilities string parsing.

A monitor answers a DDC/CI capabilities request with a string such as::

    (prot(monitor)type(lcd)model(U2720Q)cmds(01 02 03 0C E3 F3)
     vcp(02 04 10 12 60(0F 11 1B) 62 D6(01 04 05))mccs_ver(2.1))

Firmware is frequently sloppy about this format, so parsing is best effort:
malformed parts are skipped and whatever could be read is returned.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


@dataclass(frozen=True)
class CapabilitiesDocument:
    protocol: str | None = None
    display_type: str | None = None
    model: str | None = None
    mccs_version: str | None = None
    commands: list[str] = field(default_factory=list)
    vcp_features: Mapping[int, list[int]] = field(default_factory=lambda: MappingProxyType({}))
    raw: str = ""

    def supports(self, code: int) -> bool:
        return code in self.vcp_features

    def values_for(self, code: int) -> list[int]:
        """Discrete values declared for ``code``; empty for continuous or undeclared codes."""
        return list(self.vcp_features.get(code, ()))

    def to_dict(self) -> dict:
        return {
            "protocol": self.protocol,
            "type": self.display_type,
            "model": self.model,
            "mccs_version": self.mccs_version,
            "commands": list(self.commands),
            "vcp": {f"0x{code:02X}": list(values) for code, values in sorted(self.vcp_features.items())},
            "raw": self.raw,
        }


def parse(raw: str) -> CapabilitiesDocument:
    fields: dict = {}
    body = raw.strip()
    if body.startswith("(") and body.endswith(")"):
        body = body[1:-1]

    pos, end = 0, len(body)
    while pos < end:
        if not _is_key_char(body[pos]):
            pos += 1
            continue
        start = pos
        while pos < end and _is_key_char(body[pos]):
            pos += 1
        key = body[start:pos]
        if pos >= end or body[pos] != "(":
            continue
        value, pos = _read_group(body, pos + 1)

        if key == "prot":
            fields["protocol"] = value
        elif key == "type":
            fields["display_type"] = value
        elif key == "model":
            fields["model"] = value
        elif key == "mccs_ver":
            fields["mccs_version"] = value
        elif key == "cmds":
            fields["commands"] = value.split()
        elif key == "vcp":
            fields["vcp_features"] = MappingProxyType(_parse_vcp(value))

    return CapabilitiesDocument(raw=raw, **fields)


def _is_key_char(char: str) -> bool:
    return char.isalnum() or char == "_"


def _read_group(text: str, start: int) -> tuple[str, int]:
    """Read a parenthesised group whose opening paren sits just before ``start``.

    Returns the group content, inner parens included, and the position after
    the closing paren. An unterminated group runs to the end of ``text``.
    """
    depth = 1
    pos = start
    while pos < len(text):
        char = text[pos]
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0:
                return text[start:pos], pos + 1
        pos += 1
    return text[start:], len(text)


def _parse_vcp(text: str) -> dict[int, list[int]]:
    features: dict[int, list[int]] = {}
    pos, end = 0, len(text)
    while pos < end:
        if text[pos] not in _HEX_DIGITS:
            pos += 1
            continue
        start = pos
        while pos < end and text[pos] in _HEX_DIGITS:
            pos += 1
        code = int(text[start:pos], 16)

        while pos < end and text[pos].isspace():
            pos += 1
        values: list[int] = []
        if pos < end and text[pos] == "(":
            group, pos = _read_group(text, pos + 1)
            for token in group.split():
                value = _parse_hex(token)
                if value is not None and value <= 0xFFFF:
                    values.append(value)

        # Codes wider than a byte are dropped along with their value list.
        if code <= 0xFF:
            features[code] = values
    return features


def _parse_hex(token: str) -> int | None:
    if not all(char in _HEX_DIGITS for char in token):
        return None
    return int(token, 16)
