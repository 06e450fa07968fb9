import unittest

from dispman.ddc.capabilities import CapabilitiesDocument, parse
from dispman.ddc.report import render


class TestRender(unittest.TestCase):
    def test_full_report(self):
        doc = parse("(prot(monitor)type(lcd)model(ACME)mccs_ver(2.1)vcp(62 10 60(11 0F)))")
        self.assertEqual(render(doc), (
            "Monitor Capabilities:\n"
            "  Model: ACME\n"
            "  Type: lcd\n"
            "  Protocol: monitor\n"
            "  MCCS Version: 2.1\n"
            "\n"
            "Supported VCP Features:\n"
            "  0x10 (Brightness)\n"
            "  0x60 (Input Source) -> Supported Values: [0x11 (Hdmi1), 0xF (DisplayPort1)]\n"
            "  0x62 (Volume)\n"
        ))

    def test_absent_fields_are_omitted(self):
        self.assertEqual(render(CapabilitiesDocument()), "Monitor Capabilities:\n\nSupported VCP Features:\n")
        report = render(CapabilitiesDocument(model="X"))
        self.assertIn("  Model: X\n", report)
        self.assertNotIn("Type:", report)
        self.assertNotIn("Protocol:", report)
        self.assertNotIn("MCCS Version:", report)

    def test_features_sorted_by_code(self):
        doc = CapabilitiesDocument(vcp_features={0x62: [], 0x10: [], 0x60: [0x11]})
        lines = render(doc).splitlines()
        feature_lines = lines[lines.index("Supported VCP Features:") + 1:]
        self.assertEqual([line.split()[0] for line in feature_lines], ["0x10", "0x60", "0x62"])

    def test_only_input_source_values_are_annotated(self):
        doc = CapabilitiesDocument(vcp_features={0x60: [0x11], 0x10: [0x11]})
        lines = render(doc).splitlines()
        self.assertIn("  0x10 (Brightness) -> Supported Values: [0x11]", lines)
        self.assertIn("  0x60 (Input Source) -> Supported Values: [0x11 (Hdmi1)]", lines)

    def test_custom_and_unrecognized(self):
        doc = CapabilitiesDocument(vcp_features={0x14: [0x05, 0x1AB], 0x60: [0x1B]})
        lines = render(doc).splitlines()
        self.assertIn("  0x14 (Custom) -> Supported Values: [0x5, 0x1AB]", lines)
        self.assertIn("  0x60 (Input Source) -> Supported Values: [0x1B (Unknown(0x1B))]", lines)

    def test_deterministic(self):
        raw = "(prot(monitor)vcp(D6(01 04) 02 60(11 0F 03) 10))"
        self.assertEqual(render(parse(raw)), render(parse(raw)))


if __name__ == "__main__":
    unittest.main()
