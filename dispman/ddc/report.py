from __future__ import annotations

from .capabilities import CapabilitiesDocument
from .vcp import VcpFeature, code_to_feature, value_to_input_source


def render(doc: CapabilitiesDocument) -> str:
    """Human readable report of a parsed capabilities document."""
    lines = ["Monitor Capabilities:"]
    for label, value in (
        ("Model", doc.model),
        ("Type", doc.display_type),
        ("Protocol", doc.protocol),
        ("MCCS Version", doc.mccs_version),
    ):
        if value is not None:
            lines.append(f"  {label}: {value}")

    lines.append("")
    lines.append("Supported VCP Features:")
    for code in sorted(doc.vcp_features):
        lines.append(_feature_line(code, doc.vcp_features[code]))
    return "\n".join(lines) + "\n"


def _feature_line(code: int, values: list[int]) -> str:
    line = f"  0x{code:02X} ({code_to_feature(code).label})"
    if not values:
        return line
    annotate = code == VcpFeature.INPUT_SOURCE.code
    items = []
    for value in values:
        item = f"0x{value:X}"
        if annotate:
            item += f" ({value_to_input_source(value).label})"
        items.append(item)
    return f"{line} -> Supported Values: [{', '.join(items)}]"
