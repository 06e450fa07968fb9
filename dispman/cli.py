"""dispman - control monitor settings over DDC/CI.

Usage examples::

    dispman detect --json
    dispman capabilities -d 2
    dispman get brightness
    dispman set input 0x11
    dispman profile save evening
"""
import argparse
import json
import logging
import sys

from .app_state import get_active_profile_id, set_active_profile_id
from .ddc.ddcutil import DdcUtil
from .ddc.display import enumerate_displays, select_display
from .ddc.report import render
from .ddc.vcp import VcpFeature, code_to_feature, feature_from_name, value_to_input_source
from .errors import DisplayError, ProfileNotFoundError
from .log import setup_logging
from .profiles import (
    apply_settings,
    capture_settings,
    delete_profile,
    get_profile_by_name,
    list_profiles,
    save_profile,
    set_default_profile,
)

logger = logging.getLogger(__name__)

INSPECT_FEATURES = (
    VcpFeature.BRIGHTNESS,
    VcpFeature.CONTRAST,
    VcpFeature.INPUT_SOURCE,
    VcpFeature.VOLUME,
    VcpFeature.POWER_MODE,
)


def _vcp_value(text: str) -> int:
    try:
        if "_" in text:
            raise ValueError(text)
        if text.lower().startswith("0x"):
            return int(text[2:], 16)
        return int(text, 10)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid value: {text}") from None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dispman", description="A CLI tool for controlling monitor settings via DDC/CI")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    detect = sub.add_parser("detect", help="detect available displays")
    detect.add_argument("--json", action="store_true", help="output in JSON format")

    caps = sub.add_parser("capabilities", help="show the capabilities of a display")
    caps.add_argument("-d", "--display", type=int, help="display id as listed by detect, numbered from 1 (default: first)")
    caps.add_argument("--json", action="store_true", help="output the parsed document as JSON")
    caps.add_argument("--raw", action="store_true", help="print the unparsed capabilities string")
    caps.add_argument("--refresh", action="store_true", help="ignore the cached capabilities string")

    get = sub.add_parser("get", help="get a VCP feature value")
    get.add_argument("feature", help="feature code (hex or decimal) or name (brightness, contrast, volume, input, power)")
    get.add_argument("-d", "--display", type=int, help="display id, numbered from 1")
    get.add_argument("--json", action="store_true")

    set_ = sub.add_parser("set", help="set a VCP feature value")
    set_.add_argument("feature")
    set_.add_argument("value", type=_vcp_value, help="value, decimal or 0x-prefixed hex")
    set_.add_argument("-d", "--display", type=int, help="display id, numbered from 1")

    inspect = sub.add_parser("inspect", help="read the common features of a display")
    inspect.add_argument("-d", "--display", type=int, help="display id, numbered from 1")

    profile = sub.add_parser("profile", help="manage profiles")
    profile_sub = profile.add_subparsers(dest="profile_command", required=True)
    for name, help_text in (
        ("save", "save current settings as a profile"),
        ("load", "apply a profile"),
        ("delete", "delete a profile"),
        ("default", "mark a profile as the default"),
    ):
        p = profile_sub.add_parser(name, help=help_text)
        p.add_argument("name")
    profile_sub.add_parser("list", help="list profiles")

    sub.add_parser("serve", help="run the HTTP API")
    return parser


def cmd_detect(args) -> int:
    displays = enumerate_displays(DdcUtil())
    if args.json:
        print(json.dumps([d.to_dict() for d in displays], indent=2))
        return 0
    if not displays:
        print("No displays found.")
    for d in displays:
        print(f"Display {d.id}: {d.name} (bus {d.info.get('bus', '?')})")
    return 0


def cmd_capabilities(args) -> int:
    target = select_display(enumerate_displays(DdcUtil()), args.display)
    doc = target.capabilities(refresh=args.refresh)
    if args.raw:
        print(doc.raw)
    elif args.json:
        print(json.dumps(doc.to_dict(), indent=2))
    else:
        print(render(doc), end="")
    return 0


def _describe(code: int, value: int) -> str:
    text = f"{value} (0x{value:X})"
    if code == VcpFeature.INPUT_SOURCE.code:
        text += f" {value_to_input_source(value).label}"
    return text


def cmd_get(args) -> int:
    code = feature_from_name(args.feature)
    target = select_display(enumerate_displays(DdcUtil()), args.display)
    value = target.get_vcp_feature(code)
    if args.json:
        print(json.dumps({
            "display": target.id,
            "code": f"0x{code:02X}",
            "feature": code_to_feature(code).label,
            "value": value,
        }))
    else:
        print(f"Display {target.id}: {args.feature} = {_describe(code, value)}")
    return 0


def cmd_set(args) -> int:
    code = feature_from_name(args.feature)
    target = select_display(enumerate_displays(DdcUtil()), args.display)
    target.set_vcp_feature(code, args.value)
    print(f"Set {args.feature} to {args.value}")
    return 0


def cmd_inspect(args) -> int:
    target = select_display(enumerate_displays(DdcUtil()), args.display)
    print(f"Inspecting Display {target.id}: {target.name}")
    for feature in INSPECT_FEATURES:
        try:
            value = target.get_vcp_feature(feature.code)
        except DisplayError as exc:
            logger.debug("%s: %s", feature, exc)
            print(f"{feature.label}: Not supported")
            continue
        print(f"{feature.label}: {_describe(feature.code, value)}")
    return 0


def _require_profile(name: str) -> dict:
    profile = get_profile_by_name(name)
    if profile is None:
        raise ProfileNotFoundError(f"Profile '{name}' not found.")
    return profile


def cmd_profile(args) -> int:
    if args.profile_command == "list":
        active = get_active_profile_id()
        for profile in list_profiles():
            flags = []
            if profile["is_default"]:
                flags.append("default")
            if profile["id"] == active:
                flags.append("active")
            suffix = f" ({', '.join(flags)})" if flags else ""
            print(f"{profile['name']}{suffix}")
        return 0
    if args.profile_command == "save":
        settings = capture_settings(enumerate_displays(DdcUtil()))
        save_profile(args.name, {"settings": settings})
        print(f"Profile '{args.name}' saved.")
        return 0
    profile = _require_profile(args.name)
    if args.profile_command == "delete":
        delete_profile(profile["id"])
        print(f"Profile '{args.name}' deleted.")
        return 0
    if args.profile_command == "default":
        set_default_profile(profile["id"])
        print(f"Profile '{args.name}' is now the default.")
        return 0
    failures = apply_settings(enumerate_displays(DdcUtil()), profile["data"].get("settings", {}))
    set_active_profile_id(profile["id"])
    for display_id, code, error in failures:
        print(f"Failed to set feature 0x{code:X} on display {display_id}: {error}", file=sys.stderr)
    print(f"Profile '{args.name}' loaded.")
    return 1 if failures else 0


def cmd_serve(args) -> int:
    from .app import run

    run()
    return 0


COMMANDS = {
    "detect": cmd_detect,
    "capabilities": cmd_capabilities,
    "get": cmd_get,
    "set": cmd_set,
    "inspect": cmd_inspect,
    "profile": cmd_profile,
    "serve": cmd_serve,
}


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)
    try:
        return COMMANDS[args.command](args)
    except (DisplayError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
