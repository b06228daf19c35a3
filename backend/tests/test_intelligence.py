import re
import sys
import unittest
from datetime import date, datetime
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from modules.intelligence import (
    ColumnRole,
    RoleRule,
    TIME_SAMPLE_ROWS,
    classify_header,
    detect_capabilities,
    find_column,
    parse_amount,
    parse_timestamp,
    resolve_columns,
)


class RoleRuleTests(unittest.TestCase):
    def test_each_rule_matches_case_insensitively(self):
        self.assertEqual(classify_header("TOTAL_AMOUNT"), ColumnRole.REVENUE)
        self.assertEqual(classify_header("order_timestamp"), ColumnRole.DATE)
        self.assertEqual(classify_header("Client"), ColumnRole.ENTITY)
        self.assertIsNone(classify_header("Region"))

    def test_revenue_rule_takes_precedence_over_date_rule(self):
        # "Sales Date" matches both patterns; the first rule wins.
        self.assertEqual(classify_header("Sales Date"), ColumnRole.REVENUE)

    def test_find_column_uses_header_order(self):
        headers = ["Region", "Unit Price", "Line Total", "Customer", "Product"]
        self.assertEqual(find_column(headers, ColumnRole.REVENUE), "Unit Price")
        self.assertEqual(find_column(headers, ColumnRole.ENTITY), "Customer")
        self.assertIsNone(find_column(headers, ColumnRole.DATE))

    def test_resolve_columns_reports_missing_roles_as_none(self):
        columns = resolve_columns(["Created", "Notes"])
        self.assertEqual(columns[ColumnRole.DATE], "Created")
        self.assertIsNone(columns[ColumnRole.REVENUE])
        self.assertIsNone(columns[ColumnRole.ENTITY])

    def test_custom_rules_can_be_plugged_in(self):
        rules = [RoleRule(role="sku", pattern=re.compile(r"sku", re.IGNORECASE))]
        self.assertEqual(find_column(["Name", "SKU Code"], "sku", rules), "SKU Code")
        self.assertEqual(classify_header("sku", rules), "sku")
        self.assertIsNone(classify_header("Amount", rules))


class ParseAmountTests(unittest.TestCase):
    def test_strips_currency_and_separators(self):
        self.assertEqual(parse_amount("$1,250.50"), 1250.5)
        self.assertEqual(parse_amount("€ -42"), -42.0)
        self.assertEqual(parse_amount(99), 99.0)
        self.assertEqual(parse_amount(12.75), 12.75)

    def test_reads_leading_number_only(self):
        self.assertEqual(parse_amount("12-5"), 12.0)
        self.assertEqual(parse_amount("1.2.3"), 1.2)

    def test_unparseable_values_return_none(self):
        for value in [None, "", "abc", "N/A", "-", True, float("nan")]:
            with self.subTest(value=value):
                self.assertIsNone(parse_amount(value))


class ParseTimestampTests(unittest.TestCase):
    def test_iso_and_locale_strings(self):
        self.assertEqual(parse_timestamp("2024-01-15").strftime("%Y-%m-%d"), "2024-01-15")
        self.assertEqual(parse_timestamp("Jan 15, 2024").month, 1)
        self.assertEqual(parse_timestamp("03/20/2024 14:05").hour, 14)

    def test_aware_values_become_naive_utc(self):
        stamp = parse_timestamp("2024-01-15T10:30:00+02:00")
        self.assertIsNone(stamp.tzinfo)
        self.assertEqual(stamp.hour, 8)

    def test_date_objects_and_epoch_milliseconds(self):
        self.assertEqual(parse_timestamp(datetime(2024, 3, 1, 9)).hour, 9)
        self.assertEqual(parse_timestamp(date(2024, 3, 1)).day, 1)
        self.assertEqual(parse_timestamp(1704067200000).strftime("%Y-%m-%d"), "2024-01-01")

    def test_garbage_returns_none(self):
        for value in [None, "", "not a date", "Widget", "$$$", False, float("nan")]:
            with self.subTest(value=value):
                self.assertIsNone(parse_timestamp(value))


class DetectCapabilitiesTests(unittest.TestCase):
    def test_empty_dataset_has_no_capabilities(self):
        caps = detect_capabilities([], ["Amount", "Date"])
        self.assertFalse(caps.has_financial_data)
        self.assertFalse(caps.has_time_data)

    def test_financial_requires_a_parseable_value(self):
        rows = [{"Amount": "N/A"}, {"Amount": None}]
        self.assertFalse(detect_capabilities(rows, ["Amount"]).has_financial_data)

        rows.append({"Amount": "$15"})
        self.assertTrue(detect_capabilities(rows, ["Amount"]).has_financial_data)

    def test_financial_scans_every_row(self):
        rows = [{"Sales": ""} for _ in range(50)] + [{"Sales": "7"}]
        self.assertTrue(detect_capabilities(rows, ["Sales"]).has_financial_data)

    def test_time_detection_samples_only_leading_rows(self):
        rows = [{"Date": ""} for _ in range(TIME_SAMPLE_ROWS)] + [{"Date": "2024-01-01"}]
        self.assertFalse(detect_capabilities(rows, ["Date"]).has_time_data)

        rows[TIME_SAMPLE_ROWS - 1] = {"Date": "2024-01-01"}
        self.assertTrue(detect_capabilities(rows, ["Date"]).has_time_data)

    def test_time_detection_checks_every_header(self):
        rows = [{"Notes": "shipped", "Shipped On": "2024-05-02"}]
        self.assertTrue(detect_capabilities(rows, ["Notes", "Shipped On"]).has_time_data)

    def test_bare_numbers_only_count_under_date_headers(self):
        rows = [{"Amount": 1704067200000}]
        self.assertFalse(detect_capabilities(rows, ["Amount"]).has_time_data)

        rows = [{"Year": 2024}]
        self.assertTrue(detect_capabilities(rows, ["Year"]).has_time_data)

    def test_booleans_are_never_dates(self):
        rows = [{"Is Dated": True}]
        self.assertFalse(detect_capabilities(rows, ["Is Dated"]).has_time_data)

    def test_unrelated_headers_detect_nothing(self):
        rows = [{"Region": "North", "Units": 5}, {"Region": "South", "Units": 3}]
        caps = detect_capabilities(rows, ["Region", "Units"])
        self.assertFalse(caps.has_financial_data)
        self.assertFalse(caps.has_time_data)


if __name__ == "__main__":
    unittest.main()
