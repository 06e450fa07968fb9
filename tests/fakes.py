import os
import tempfile
from unittest import mock

from dispman.config import AppConfig
from dispman.ddc.ddcutil import DdcUtilError
from dispman.ddc.parser import VcpValue


DELL = {"index": "1", "bus": "3", "model": "U2720Q", "serial": "98765", "raw": []}

DELL_CAPS = "(prot(monitor)type(LCD)model(U2720Q)cmds(01 02 03 0C E3 F3)vcp(02 04 10 12 60(0F 11) D6(01 04))mccs_ver(2.1))"


class FakeDdcUtil:
    """Stands in for the ddcutil binary."""

    def __init__(self, displays=None, values=None, caps=DELL_CAPS, fail_codes=()):
        self.displays = displays if displays is not None else [DELL]
        self.values = dict(values or {})
        self.caps = caps
        self.fail_codes = set(fail_codes)
        self.set_calls = []
        self.capabilities_calls = 0

    def detect(self):
        return [dict(d) for d in self.displays], 1

    def get_vcp(self, code, target_args):
        if code in self.fail_codes:
            raise DdcUtilError(f"getvcp {code:02X} failed")
        cur = self.values.get(code)
        return VcpValue(code=code, cur=cur, max=100 if cur is not None else None), 1

    def set_vcp(self, code, value, target_args):
        if code in self.fail_codes:
            raise DdcUtilError(f"setvcp {code:02X} failed")
        self.set_calls.append((code, value, list(target_args)))
        self.values[code] = value
        return 1

    def capabilities(self, target_args):
        self.capabilities_calls += 1
        return self.caps, 1


def use_temp_db(testcase):
    """Point every database module at a throwaway sqlite file for one test."""
    tmp = tempfile.TemporaryDirectory()
    testcase.addCleanup(tmp.cleanup)
    config = AppConfig(db_path=os.path.join(tmp.name, "test.db"))
    patcher = mock.patch("dispman.db.CONFIG", config)
    patcher.start()
    testcase.addCleanup(patcher.stop)
    return config
