import logging
import subprocess
import time
from .parser import parse_getvcp, parse_detect, parse_capabilities_output, VcpValue
from ..config import CONFIG
from ..errors import DisplayError

logger = logging.getLogger(__name__)


class DdcUtilError(DisplayError):
    pass


class DdcUtil:
    def __init__(self, path: str | None = None):
        self.path = path or CONFIG.ddcutil_path

    def _run(self, args: list[str], timeout_ms: int | None = None) -> tuple[str, int]:
        timeout_ms = timeout_ms or CONFIG.ddc_timeout_ms
        cmd = [self.path] + args
        logger.debug("running %s", " ".join(cmd))
        try:
            start = time.perf_counter()
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout_ms / 1000.0)
            duration_ms = int((time.perf_counter() - start) * 1000)
        except subprocess.TimeoutExpired as exc:
            raise DdcUtilError(f"ddcutil timeout after {timeout_ms}ms") from exc
        except OSError as exc:
            raise DdcUtilError(f"cannot run {self.path}: {exc}") from exc
        if result.returncode != 0:
            raise DdcUtilError(result.stderr.strip() or result.stdout.strip() or "ddcutil error")
        logger.debug("%s finished in %dms", args[0], duration_ms)
        return result.stdout.strip(), duration_ms

    def detect(self) -> tuple[list[dict], int]:
        out, ms = self._run(["detect", "--brief"])
        return parse_detect(out), ms

    def get_vcp(self, code: int, target_args: list[str]) -> tuple[VcpValue, int]:
        out, ms = self._run(["getvcp", f"{code:02X}", "--brief"] + target_args)
        return parse_getvcp(out, code), ms

    def set_vcp(self, code: int, value: int, target_args: list[str]) -> int:
        _, ms = self._run(["setvcp", f"{code:02X}", str(value)] + target_args)
        return ms

    def capabilities(self, target_args: list[str]) -> tuple[str, int]:
        out, ms = self._run(["capabilities", "--verbose"] + target_args, timeout_ms=CONFIG.ddc_capabilities_timeout_ms)
        return parse_capabilities_output(out), ms
