#!/usr/bin/env python3
"""
Tests for the rule-based helpers: number normalization, bulk phrases and
the delete-all confirmation phrase.

USAGE:
    Run from project root: python -m pytest tests/test_rules.py -v
"""

import unittest

from shopadmin.nlu.rules import (
    CONFIRM_DELETE_ALL_PHRASE,
    is_bulk_phrase,
    is_delete_all_confirmation,
    normalize_number,
)


class TestNormalizeNumber(unittest.TestCase):

    def test_localized_thousands(self):
        self.assertEqual(normalize_number("1.500.000"), 1500000)
        self.assertEqual(normalize_number("1,500,000"), 1500000)
        self.assertEqual(normalize_number("900.000"), 900000)

    def test_plain_and_numeric_values(self):
        self.assertEqual(normalize_number("25"), 25)
        self.assertEqual(normalize_number(7), 7)
        self.assertEqual(normalize_number(7.0), 7)
        self.assertEqual(normalize_number(" 12 "), 12)

    def test_currency_prefix_and_zero_decimals(self):
        self.assertEqual(normalize_number("Rp 1.500.000"), 1500000)
        self.assertEqual(normalize_number("Rp20000"), 20000)
        self.assertEqual(normalize_number("300,00"), 300)

    def test_empty_is_none(self):
        self.assertIsNone(normalize_number(None))
        self.assertIsNone(normalize_number("   "))

    def test_rejects_non_numbers(self):
        for bad in ["abc", "12.5", "1.50.0", True, 3.5, [1]]:
            with self.assertRaises(ValueError):
                normalize_number(bad, field="price")

    def test_negative_kept_for_validation(self):
        self.assertEqual(normalize_number("-3"), -3)


class TestBulkPhrases(unittest.TestCase):

    def test_detects_bulk_phrases(self):
        for text in ["all products", "ALL Products please", "the stock of all items", "every product"]:
            self.assertTrue(is_bulk_phrase(text), text)

    def test_ignores_regular_names(self):
        for text in ["Gaming Chair", "", None, "small product"]:
            self.assertFalse(is_bulk_phrase(text), text)


class TestConfirmationPhrase(unittest.TestCase):

    def test_exact_phrase_any_case(self):
        self.assertTrue(is_delete_all_confirmation(CONFIRM_DELETE_ALL_PHRASE))
        self.assertTrue(is_delete_all_confirmation("delete all products"))
        self.assertTrue(is_delete_all_confirmation("  Delete  All Products "))

    def test_anything_else_is_not_confirmation(self):
        for text in ["delete all products now", "yes", "DELETE ALL PRODUCT", "", None]:
            self.assertFalse(is_delete_all_confirmation(text), text)


if __name__ == '__main__':
    unittest.main()
