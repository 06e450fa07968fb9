from __future__ import annotations
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from ..state import DdcState, now_iso
from ..config import CONFIG
from ..errors import DisplayError
from .capabilities import CapabilitiesDocument
from .display import Display
from .vcp import VcpFeature

logger = logging.getLogger(__name__)

WATCHED_CODES = (
    VcpFeature.BRIGHTNESS.code,
    VcpFeature.CONTRAST.code,
    VcpFeature.INPUT_SOURCE.code,
    VcpFeature.VOLUME.code,
)


def _key(code: int) -> str:
    return f"0x{code:02X}"


@dataclass
class DdcCommandResult:
    ok: bool
    error: str | None
    duration_ms: int | None


class DdcController:
    """Serialises writes to one display and coalesces bursts per VCP code."""

    def __init__(self, display: Display, state: DdcState, on_update: Callable[[], None], lock: threading.Lock | None = None):
        self.display = display
        self.state = state
        self.on_update = on_update
        self.capabilities: CapabilitiesDocument | None = None
        self._state_lock = lock
        self._lock = threading.Lock()
        self._pending: dict[int, int] = {}
        self._wake = threading.Condition(self._lock)
        self._stop = False
        self._thread = threading.Thread(target=self._worker, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        with self._lock:
            self._stop = True
            self._wake.notify_all()

    def set_feature(self, code: int, value: int) -> None:
        with self._lock:
            self._pending[code] = value
            self._wake.notify_all()

    def rescan(self, refresh: bool = False) -> None:
        try:
            caps = self.display.capabilities(refresh=refresh)
        except DisplayError as exc:
            self._set_error(str(exc))
            return
        self.capabilities = caps
        values = {}
        errors = []
        for code in WATCHED_CODES:
            if not self.declares(code):
                continue
            try:
                values[_key(code)] = {"cur": self.display.get_vcp_feature(code)}
            except DisplayError as exc:
                errors.append(f"{_key(code)}: {exc}")

        def _apply_scan():
            self.state.display = self.display.to_dict()
            self.state.supported = [_key(code) for code in sorted(caps.vcp_features)]
            self.state.values.update(values)
            self.state.status = "ok" if values else "degraded"
            self.state.lastError = "; ".join(errors) or (None if values else "No readable VCP features")
            self.state.lastOkAt = now_iso()
        self._with_state_lock(_apply_scan)
        self.on_update()

    def apply(self, code: int, value: int) -> DdcCommandResult:
        if not self.declares(code):
            return DdcCommandResult(False, f"{_key(code)} unsupported", None)
        retries = CONFIG.ddc_retry_count + 1
        last_error = None
        for _ in range(retries):
            try:
                start = time.perf_counter()
                self.display.set_vcp_feature(code, value)
                duration_ms = int((time.perf_counter() - start) * 1000)
            except ValueError as exc:
                return DdcCommandResult(False, str(exc), None)
            except DisplayError as exc:
                last_error = str(exc)
                logger.debug("set %s=%s on display %s failed: %s", _key(code), value, self.display.id, exc)
                time.sleep(0.05)
                continue

            def _apply_ok():
                self.state.values.setdefault(_key(code), {})["cur"] = value
                self.state.lastOkAt = now_iso()
                self.state.lastError = None
                self.state.lastCommandMs = duration_ms
                self.state.status = "ok"
            self._with_state_lock(_apply_ok)
            self.on_update()
            return DdcCommandResult(True, None, duration_ms)
        self._set_error(last_error or "DDC failure")
        return DdcCommandResult(False, last_error, None)

    def declares(self, code: int) -> bool:
        # An empty or unreadable capabilities string declares nothing, so nothing is refused.
        if self.capabilities is None or not self.capabilities.vcp_features:
            return True
        return self.capabilities.supports(code)

    def _worker(self) -> None:
        while True:
            with self._lock:
                if self._stop:
                    return
                if not self._pending:
                    self._wake.wait(timeout=0.1)
                    continue
                self._wake.wait(timeout=CONFIG.ddc_coalesce_ms / 1000.0)
                pending = dict(self._pending)
                self._pending.clear()
            for code, value in pending.items():
                result = self.apply(code, value)
                if not result.ok:
                    logger.warning("display %s: %s", self.display.id, result.error)

    def _set_error(self, message: str) -> None:
        def _apply_error():
            self.state.status = "degraded" if self.state.display else "unavailable"
            self.state.lastError = message
        self._with_state_lock(_apply_error)
        self.on_update()

    def _with_state_lock(self, fn: Callable[[], None]) -> None:
        if self._state_lock:
            with self._state_lock:
                fn()
        else:
            fn()
