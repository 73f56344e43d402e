"""Tests for document types and outcome tallying."""

import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sheet_to_docx.model import (
    AlreadyExists,
    Created,
    DocumentType,
    Failed,
    RunSummary,
    cell_text,
    is_empty,
)


class TestDocumentType(unittest.TestCase):
    def test_labels_and_status_columns(self):
        self.assertEqual(DocumentType.TYPE1.label, "Type 1")
        self.assertEqual(DocumentType.TYPE2.status_column, "Type 2 Analysis Created")
        self.assertEqual(DocumentType.TYPE3.status_column, "Type 3 Analysis Created")

    def test_file_name(self):
        self.assertEqual(DocumentType.TYPE1.file_name("Orders"),
                         "Orders - Type 1 Analysis.docx")

    def test_parse_accepts_common_spellings(self):
        for text in ("Type1", "type1", "TYPE1", "Type 1", " Type1 "):
            self.assertIs(DocumentType.parse(text), DocumentType.TYPE1)
        self.assertIs(DocumentType.parse("Type3"), DocumentType.TYPE3)

    def test_parse_rejects_unknown(self):
        with self.assertRaises(ValueError):
            DocumentType.parse("Type4")


class TestRunSummary(unittest.TestCase):
    def test_tally(self):
        outcomes = [
            Created("A", "a.docx", (("System Name", "A"),)),
            Created("B", "b.docx"),
            AlreadyExists("C", "c.docx", True),
            Failed("D", "boom"),
        ]
        summary = RunSummary.tally(outcomes)
        self.assertEqual((summary.created, summary.existing, summary.failed), (2, 1, 1))
        self.assertEqual(summary.total, 4)

    def test_empty(self):
        self.assertEqual(RunSummary.tally([]).total, 0)


class TestCellHelpers(unittest.TestCase):
    def test_is_empty(self):
        self.assertTrue(is_empty(None))
        self.assertTrue(is_empty("   "))
        self.assertFalse(is_empty(0))
        self.assertFalse(is_empty("x"))

    def test_cell_text(self):
        self.assertEqual(cell_text(None), "")
        self.assertEqual(cell_text(" Orders "), "Orders")
        self.assertEqual(cell_text(1234.0), "1234")
        self.assertEqual(cell_text(12.5), "12.5")


if __name__ == "__main__":
    unittest.main()
