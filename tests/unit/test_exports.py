"""
Unit tests for adp_portal/exports.py -- Excel workbook of a works view.
"""
import os
import sys
import pytest
from openpyxl import load_workbook

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))
os.environ.setdefault("DATABASE_URL", "")

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
from __mocks__.fixtures import make_forwarded_item, make_work_item

from adp_portal.exports import COLUMNS, build_workbook, workbook_bytes

pytestmark = pytest.mark.unit


class TestBuildWorkbook:
    def test_header_row(self):
        ws = build_workbook([]).active
        assert [c.value for c in ws[1]] == [header for header, _ in COLUMNS]

    def test_one_row_per_work(self):
        ws = build_workbook([make_forwarded_item("a"), make_work_item("b")]).active
        assert ws.max_row == 3
        assert ws.cell(row=2, column=1).value == "a"
        assert ws.cell(row=2, column=12).value == "Pending Review"
        assert ws.cell(row=3, column=12).value == "Not forwarded"

    def test_title_truncated(self):
        assert build_workbook([], "x" * 40).active.title == "x" * 31


class TestWorkbookBytes:
    def test_readable(self):
        output, filename = workbook_bytes([make_forwarded_item("a")], "EEPH Works")
        assert filename.startswith("EEPH_Works_Export_")
        assert filename.endswith(".xlsx")
        ws = load_workbook(output).active
        assert ws.cell(row=2, column=1).value == "a"
