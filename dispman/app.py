from __future__ import annotations
import logging
from threading import Lock
from flask import Flask, jsonify, request
from flask_socketio import SocketIO, emit

from .config import CONFIG
from .db import init_db
from .state import DdcState, SystemState
from .caps_cache import clear_capabilities
from .ddc.controller import DdcController
from .ddc.ddcutil import DdcUtil
from .ddc.display import MAX_VCP_VALUE, enumerate_displays
from .ddc.report import render
from .ddc.vcp import code_to_feature, feature_from_name
from .errors import DisplayError, DisplayNotFoundError, FeatureNotSupportedError
from .profiles import list_profiles, save_profile, update_profile, get_profile_by_name, delete_profile as delete_profile_db, set_default_profile, get_profile, load_default_or_last, capture_settings
from .app_state import get_active_profile_id, set_active_profile_id

logger = logging.getLogger(__name__)

socketio = SocketIO(async_mode="threading", cors_allowed_origins=[])
state_lock = Lock()
state = SystemState()
controllers: dict[int, DdcController] = {}


def create_app() -> Flask:
    app = Flask(__name__)

    init_db()
    socketio.init_app(app)
    _rescan_displays()

    state.activeProfileId = get_active_profile_id() or load_default_or_last()

    @app.before_request
    def auth_guard():
        if CONFIG.auth_token and request.path.startswith("/api/"):
            token = request.headers.get("X-Auth-Token")
            if token != CONFIG.auth_token:
                return jsonify({"error": "unauthorized"}), 401

    @app.errorhandler(DisplayNotFoundError)
    def display_not_found(exc):
        return jsonify({"error": str(exc)}), 404

    @app.errorhandler(FeatureNotSupportedError)
    def feature_not_supported(exc):
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(DisplayError)
    def display_error(exc):
        return jsonify({"error": str(exc)}), 502

    @app.route("/api/health")
    def health():
        return jsonify({"ok": True, "displays": len(controllers)})

    @app.route("/api/displays")
    def displays_list():
        with state_lock:
            return jsonify([
                {**c.display.to_dict(), "state": state.displays[str(c.display.id)].__dict__}
                for c in controllers.values()
            ])

    @app.route("/api/displays/rescan", methods=["POST"])
    def displays_rescan():
        clear_capabilities()
        _rescan_displays(refresh=True)
        return jsonify({"ok": True, "displays": [c.display.to_dict() for c in controllers.values()]})

    @app.route("/api/displays/<int:display_id>/capabilities")
    def display_capabilities(display_id: int):
        controller = _controller(display_id)
        doc = controller.capabilities or controller.display.capabilities()
        return jsonify({**doc.to_dict(), "report": render(doc)})

    @app.route("/api/displays/<int:display_id>/vcp/<feature>")
    def vcp_get(display_id: int, feature: str):
        controller = _controller(display_id)
        code = feature_from_name(feature)
        value = controller.display.get_vcp_feature(code)
        return jsonify({"code": f"0x{code:02X}", "feature": code_to_feature(code).label, "value": value})

    @app.route("/api/displays/<int:display_id>/vcp/<feature>", methods=["PUT"])
    def vcp_set(display_id: int, feature: str):
        controller = _controller(display_id)
        code = feature_from_name(feature)
        if not controller.declares(code):
            raise FeatureNotSupportedError(f"0x{code:02X} not declared by display {display_id}")
        payload = request.get_json(force=True)
        try:
            value = int(payload["value"])
        except (KeyError, TypeError, ValueError):
            return jsonify({"error": "value missing or not an integer"}), 400
        if not 0 <= value <= MAX_VCP_VALUE:
            return jsonify({"error": f"value {value} out of range (0-{MAX_VCP_VALUE})"}), 400
        controller.set_feature(code, value)
        with state_lock:
            version = state.meta["version"]
        return jsonify({"accepted": True, "version": version})

    @app.route("/api/state")
    def get_state():
        with state_lock:
            return jsonify(state.to_dict())

    @app.route("/api/profiles", methods=["GET"])
    def profiles_list():
        return jsonify(list_profiles())

    @app.route("/api/profiles", methods=["POST"])
    def profiles_create():
        payload = request.get_json(force=True)
        name = payload.get("name") or "Profile"
        data = payload.get("data") or {"settings": capture_settings([c.display for c in controllers.values()])}
        profile = save_profile(name, data)
        return jsonify(profile)

    @app.route("/api/profiles/<profile_id>", methods=["PATCH"])
    def profiles_patch(profile_id: str):
        payload = request.get_json(force=True)
        name = payload.get("name")
        if name is not None:
            other = get_profile_by_name(name)
            if other and other["id"] != profile_id:
                return jsonify({"error": f"profile name '{name}' already in use"}), 409
        update_profile(profile_id, name, payload.get("data"))
        return jsonify({"ok": True})

    @app.route("/api/profiles/<profile_id>", methods=["DELETE"])
    def profiles_delete(profile_id: str):
        delete_profile_db(profile_id)
        return jsonify({"ok": True})

    @app.route("/api/profiles/<profile_id>/default", methods=["POST"])
    def profiles_default(profile_id: str):
        set_default_profile(profile_id)
        return jsonify({"ok": True})

    @app.route("/api/profiles/<profile_id>/apply", methods=["POST"])
    def profiles_apply(profile_id: str):
        profile = get_profile(profile_id)
        if not profile:
            return jsonify({"error": "not found"}), 404
        _apply_profile(profile["data"], profile_id)
        return jsonify({"ok": True})

    @socketio.on("connect")
    def ws_connect():
        emit("state.snapshot", {"state": _snapshot()})

    @socketio.on("ddc.set")
    def ws_ddc_set(message):
        try:
            controller = _controller(int(message.get("displayId", 1)))
            code = feature_from_name(str(message["feature"]))
            value = int(message["value"])
            if not 0 <= value <= MAX_VCP_VALUE:
                raise ValueError(f"value {value} out of range (0-{MAX_VCP_VALUE})")
            controller.set_feature(code, value)
        except (DisplayError, KeyError, TypeError, ValueError) as exc:
            emit("ddc.error", {"message": str(exc), "recoverable": True})
            return
        snapshot = _snapshot()
        emit("ddc.updated", {"displays": snapshot["displays"], "meta": snapshot["meta"]}, broadcast=True)

    @socketio.on("profile.apply")
    def ws_profile_apply(message):
        profile_id = message.get("profileId")
        profile = get_profile(profile_id) if profile_id else None
        if not profile:
            emit("ddc.error", {"message": "Profile not found", "detail": "", "recoverable": True})
            return
        _apply_profile(profile["data"], profile_id)
        emit("state.snapshot", {"state": _snapshot()}, broadcast=True)

    return app


def _controller(display_id: int) -> DdcController:
    controller = controllers.get(display_id)
    if controller is None:
        raise DisplayNotFoundError(f"Display {display_id} not found")
    return controller


def _rescan_displays(refresh: bool = False) -> None:
    for controller in controllers.values():
        controller.stop()
    controllers.clear()
    try:
        displays = enumerate_displays(DdcUtil())
    except DisplayError as exc:
        logger.warning("display detection failed: %s", exc)
        displays = []
    with state_lock:
        state.displays = {}
        for display in displays:
            state.displays[str(display.id)] = DdcState()
    for display in displays:
        controller = DdcController(display, state.displays[str(display.id)], _ddc_updated, lock=state_lock)
        controllers[display.id] = controller
        controller.start()
        controller.rescan(refresh=refresh)
    with state_lock:
        state.bump()


def _apply_profile(profile_data: dict, profile_id: str | None) -> None:
    settings = profile_data.get("settings", {})
    for controller in controllers.values():
        for code, value in settings.get(controller.display.name, []):
            controller.set_feature(int(code), int(value))
    with state_lock:
        state.activeProfileId = profile_id
        state.bump()
    if profile_id:
        set_active_profile_id(profile_id)


def _snapshot() -> dict:
    with state_lock:
        return state.to_dict()


def _ddc_updated() -> None:
    with state_lock:
        state.bump()
        snapshot = state.to_dict()
    try:
        socketio.emit("ddc.updated", {"displays": snapshot["displays"], "meta": snapshot["meta"]})
    except RuntimeError as exc:
        logger.debug("ddc.updated not broadcast: %s", exc)


def run() -> None:
    app = create_app()
    logger.info("serving on %s:%s", CONFIG.bind_host, CONFIG.bind_port)
    socketio.run(app, host=CONFIG.bind_host, port=CONFIG.bind_port, allow_unsafe_werkzeug=True)


if __name__ == "__main__":
    run()
