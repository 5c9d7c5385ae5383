import unittest

from studygrid.util.slotkey import InvalidKey, coerce_key, format_slot_key, parse_date_key, parse_slot_key


class TestSlotKeyContract(unittest.TestCase):
    def test_format_is_zero_padded_date_hour(self) -> None:
        self.assertEqual(format_slot_key("2024-01-01", 9), "2024-01-01-09")
        self.assertEqual(format_slot_key("2024-01-01", 24), "2024-01-01-24")

    def test_parse_returns_date_and_hour(self) -> None:
        self.assertEqual(parse_slot_key("2024-03-05-17"), ("2024-03-05", 17))

    def test_parse_rejects_malformed(self) -> None:
        for bad in ("2024-01-01", "2024-01-01-9", "2024-01-01-25", "2024-13-01-09", "x", ""):
            with self.subTest(bad=bad):
                with self.assertRaises(InvalidKey):
                    parse_slot_key(bad)

    def test_invalid_key_is_value_error(self) -> None:
        with self.assertRaises(ValueError):
            format_slot_key("2024-02-30", 9)

    def test_coerce_accepts_tuple_and_string(self) -> None:
        self.assertEqual(coerce_key(("2024-01-01", 10)), ("2024-01-01", 10))
        self.assertEqual(coerce_key("2024-01-01-10"), ("2024-01-01", 10))
        with self.assertRaises(InvalidKey):
            coerce_key(("2024-01-01", -1))
        with self.assertRaises(InvalidKey):
            coerce_key(20240101)

    def test_parse_date_key(self) -> None:
        self.assertEqual(parse_date_key("2024-12-31"), "2024-12-31")
        with self.assertRaises(InvalidKey):
            parse_date_key("2024/12/31")


if __name__ == "__main__":
    unittest.main(verbosity=2)
