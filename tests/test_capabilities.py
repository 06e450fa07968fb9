import dataclasses
import unittest

from dispman.ddc.capabilities import CapabilitiesDocument, parse, _read_group


class TestTopLevelKeys(unittest.TestCase):
    def assertOnly(self, doc, **expected):
        fields = {
            "protocol": None,
            "display_type": None,
            "model": None,
            "mccs_version": None,
        }
        fields.update(expected)
        for name, value in fields.items():
            self.assertEqual(getattr(doc, name), value, name)
        self.assertEqual(doc.commands, [])
        self.assertEqual(dict(doc.vcp_features), {})

    def test_single_string_keys(self):
        self.assertOnly(parse("prot(DDC)"), protocol="DDC")
        self.assertOnly(parse("type(lcd)"), display_type="lcd")
        self.assertOnly(parse("model(ACME123)"), model="ACME123")
        self.assertOnly(parse("mccs_ver(2.1)"), mccs_version="2.1")

    def test_commands_keep_order(self):
        self.assertEqual(parse("cmds(01 02 03)").commands, ["01", "02", "03"])
        self.assertEqual(parse("cmds( F3  01\t0C )").commands, ["F3", "01", "0C"])

    def test_full_string_with_outer_parens(self):
        raw = "(prot(monitor)type(LCD)model(U2720Q)cmds(01 02 03 0C E3 F3)vcp(02 04 10 12 60(0F 11 1B) D6(01 04 05))mccs_ver(2.1))"
        doc = parse(raw)
        self.assertEqual(doc.protocol, "monitor")
        self.assertEqual(doc.display_type, "LCD")
        self.assertEqual(doc.model, "U2720Q")
        self.assertEqual(doc.mccs_version, "2.1")
        self.assertEqual(doc.commands, ["01", "02", "03", "0C", "E3", "F3"])
        self.assertEqual(dict(doc.vcp_features), {
            0x02: [],
            0x04: [],
            0x10: [],
            0x12: [],
            0x60: [0x0F, 0x11, 0x1B],
            0xD6: [0x01, 0x04, 0x05],
        })
        self.assertEqual(doc.raw, raw)

    def test_surrounding_whitespace(self):
        doc = parse("  \n(prot(monitor) model(X))\r\n")
        self.assertEqual(doc.protocol, "monitor")
        self.assertEqual(doc.model, "X")

    def test_unknown_key_with_nested_value_is_skipped(self):
        doc = parse("foo(a(b)c)prot(X)")
        self.assertEqual(doc.protocol, "X")
        self.assertIsNone(doc.model)

    def test_vtag_with_nested_groups_does_not_disturb_vcp(self):
        doc = parse("(prot(monitor)vcpname(14(Color Preset) 60(Inputs))vcp(10 14(05 06)))")
        self.assertEqual(dict(doc.vcp_features), {0x10: [], 0x14: [0x05, 0x06]})

    def test_garbage_between_pairs(self):
        doc = parse("garbage!! prot(X) ###")
        self.assertEqual(doc.protocol, "X")
        self.assertIsNone(doc.display_type)
        self.assertIsNone(doc.model)
        self.assertIsNone(doc.mccs_version)
        self.assertEqual(doc.commands, [])
        self.assertEqual(dict(doc.vcp_features), {})

    def test_empty_and_degenerate_input(self):
        for raw in ("", "()", "   ", "(", ")", ")(", "((()))"):
            doc = parse(raw)
            self.assertIsNone(doc.protocol, raw)
            self.assertIsNone(doc.model, raw)
            self.assertEqual(doc.commands, [], raw)
            self.assertEqual(dict(doc.vcp_features), {}, raw)
            self.assertEqual(doc.raw, raw)

    def test_unterminated_value_runs_to_end(self):
        self.assertEqual(parse("prot(abc").protocol, "abc")
        self.assertEqual(parse("(prot(monitor)model(U27").model, "U27")

    def test_key_followed_by_space_is_discarded(self):
        doc = parse("prot (X)model(Y)")
        self.assertIsNone(doc.protocol)
        self.assertEqual(doc.model, "Y")

    def test_duplicate_keys_last_wins(self):
        doc = parse("prot(A)prot(B)cmds(01 02)cmds(03)vcp(10 12)vcp(60(11))")
        self.assertEqual(doc.protocol, "B")
        self.assertEqual(doc.commands, ["03"])
        self.assertEqual(dict(doc.vcp_features), {0x60: [0x11]})


class TestVcpGrammar(unittest.TestCase):
    def test_codes_and_values(self):
        doc = parse("vcp(10 12 60(01 03 11))")
        self.assertEqual(dict(doc.vcp_features), {0x10: [], 0x12: [], 0x60: [0x01, 0x03, 0x11]})

    def test_code_without_values_is_supported(self):
        doc = parse("vcp(10)")
        self.assertTrue(doc.supports(0x10))
        self.assertEqual(doc.values_for(0x10), [])

    def test_whitespace_between_code_and_values(self):
        doc = parse("vcp(60  (0F 11) 10)")
        self.assertEqual(dict(doc.vcp_features), {0x60: [0x0F, 0x11], 0x10: []})

    def test_lower_case_hex(self):
        doc = parse("vcp(d6(01 04) ca)")
        self.assertEqual(dict(doc.vcp_features), {0xD6: [0x01, 0x04], 0xCA: []})

    def test_bad_value_tokens_dropped(self):
        doc = parse("vcp(60(01 zz 11 12345 FFFF))")
        self.assertEqual(doc.values_for(0x60), [0x01, 0x11, 0xFFFF])

    def test_overflowing_code_dropped(self):
        doc = parse("vcp(10 1FF 12)")
        self.assertEqual(dict(doc.vcp_features), {0x10: [], 0x12: []})

    def test_overflowing_code_takes_its_values_with_it(self):
        # The value list belongs to the dropped code; its entries are not re-read as codes.
        doc = parse("vcp(100(01 02) 12)")
        self.assertEqual(dict(doc.vcp_features), {0x12: []})

    def test_garbage_inside_vcp(self):
        doc = parse("vcp(10 ,; 12 ! 60(0F) ?)")
        self.assertEqual(dict(doc.vcp_features), {0x10: [], 0x12: [], 0x60: [0x0F]})

    def test_repeated_code_last_wins(self):
        doc = parse("vcp(60(01) 60(11 12))")
        self.assertEqual(dict(doc.vcp_features), {0x60: [0x11, 0x12]})


class TestReadGroup(unittest.TestCase):
    def test_nested(self):
        self.assertEqual(_read_group("a(b)c)rest", 0), ("a(b)c", 6))

    def test_empty(self):
        self.assertEqual(_read_group(")", 0), ("", 1))

    def test_unterminated(self):
        self.assertEqual(_read_group("a(b", 0), ("a(b", 3))


class TestDocument(unittest.TestCase):
    def test_is_immutable(self):
        doc = parse("prot(X)vcp(10)")
        with self.assertRaises(dataclasses.FrozenInstanceError):
            doc.protocol = "Y"
        with self.assertRaises(TypeError):
            doc.vcp_features[0x12] = []

    def test_to_dict(self):
        doc = parse("(prot(monitor)cmds(01 02)vcp(60(0F 11) 10))")
        self.assertEqual(doc.to_dict(), {
            "protocol": "monitor",
            "type": None,
            "model": None,
            "mccs_version": None,
            "commands": ["01", "02"],
            "vcp": {"0x10": [], "0x60": [15, 17]},
            "raw": "(prot(monitor)cmds(01 02)vcp(60(0F 11) 10))",
        })

    def test_default_document(self):
        doc = CapabilitiesDocument()
        self.assertFalse(doc.supports(0x10))
        self.assertEqual(doc.values_for(0x10), [])


if __name__ == "__main__":
    unittest.main()
