"""Tests for versus.formatting: shared text helpers."""

from __future__ import annotations

import unittest

from versus.formatting import (
    format_banner,
    format_ms,
    format_section_header,
    format_size,
    format_table,
    truncate,
)


class TestFormatMs(unittest.TestCase):
    def test_milliseconds(self) -> None:
        self.assertEqual(format_ms(850), "850ms")

    def test_seconds(self) -> None:
        self.assertEqual(format_ms(12_400), "12.40s")

    def test_minutes(self) -> None:
        self.assertEqual(format_ms(125_000), "2m 05s")

    def test_zero(self) -> None:
        self.assertEqual(format_ms(0), "0ms")

    def test_none(self) -> None:
        self.assertEqual(format_ms(None), "N/A")


class TestFormatSize(unittest.TestCase):
    def test_units(self) -> None:
        self.assertEqual(format_size(512), "512B")
        self.assertEqual(format_size(10 * 1024), "10KB")
        self.assertEqual(format_size(1024 * 1024), "1MB")
        self.assertEqual(format_size(1500 * 1024 * 1024), "1GB")


class TestFormatTable(unittest.TestCase):
    def test_basic(self) -> None:
        headers = ["Name", "Value"]
        rows = [["alpha", "100"], ["beta", "200"]]
        text = format_table(headers, rows)
        self.assertIn("Name", text)
        self.assertIn("alpha", text)
        self.assertIn("200", text)
        lines = text.splitlines()
        self.assertEqual(len(lines), 4)  # header + rule + 2 rows
        self.assertIn("┼", lines[1])

    def test_truncation(self) -> None:
        headers = ["Name", "Value"]
        rows = [["a" * 50, "short"]]
        text = format_table(headers, rows, max_col_width={0: 10})
        self.assertIn("...", text)
        self.assertNotIn("a" * 50, text)

    def test_alignment(self) -> None:
        headers = ["Name", "Count"]
        rows = [["alpha", "100"], ["beta", "2"]]
        text = format_table(headers, rows, alignments=["l", "r"])
        lines = text.splitlines()
        self.assertTrue(lines[2].endswith("100"))
        self.assertTrue(lines[3].endswith("    2"))

    def test_short_rows_padded(self) -> None:
        text = format_table(["A", "B", "C"], [["x"]])
        self.assertEqual(len(text.splitlines()), 3)

    def test_empty_rows(self) -> None:
        text = format_table(["Name", "Value"], [])
        self.assertEqual(len(text.splitlines()), 2)  # header + rule

    def test_empty_headers(self) -> None:
        self.assertEqual(format_table([], [["a", "b"]]), "")


class TestTruncate(unittest.TestCase):
    def test_short(self) -> None:
        self.assertEqual(truncate("hello", 10), "hello")

    def test_long(self) -> None:
        result = truncate("hello world", 8)
        self.assertEqual(len(result), 8)
        self.assertTrue(result.endswith("..."))

    def test_exact_length(self) -> None:
        self.assertEqual(truncate("hello", 5), "hello")


class TestHeaders(unittest.TestCase):
    def test_section_header(self) -> None:
        header = format_section_header("Test")
        self.assertTrue(header.startswith("▶ Test\n"))
        self.assertIn("─", header)

    def test_section_header_width(self) -> None:
        rule = format_section_header("Title", width=40).splitlines()[1]
        self.assertEqual(len(rule), 40)

    def test_banner(self) -> None:
        lines = format_banner("Report", width=20).splitlines()
        self.assertEqual(lines[0], "=" * 20)
        self.assertEqual(lines[1].strip(), "Report")
        self.assertEqual(lines[2], "=" * 20)
