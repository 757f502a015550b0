"""
tests/test_reporting.py - Quote Presentation Tests

Author: Funeral Cover Pricing Project
License: MIT
"""

from decimal import Decimal

import pytest
from openpyxl import load_workbook

from funeral_cover.calculator import PremiumCalculator
from funeral_cover.rate_table import RateEntry, build_rate_table
from funeral_cover.reporting import (
    BREAKDOWN_COLUMNS,
    QuoteWorkbookWriter,
    breakdown_to_dataframe,
    export_quote_workbook,
    format_currency,
)


@pytest.fixture
def family_quote():
    calculator = PremiumCalculator(build_rate_table([
        RateEntry("Main Member, Spouse and up to 6 Children", "(18 - 65)", "5.03"),
        RateEntry("Extended family", "(66 - 75)", "7.48"),
    ]))
    return calculator.calculate_total_premium({
        "mainMemberAge": 35, "coverAmount": 50000,
        "additionalMembers": [
            {"relationship": "spouse"},
            {"relationship": "child", "age": 6},
            {"relationship": "extended", "age": 70},
        ],
    })


class TestFormatCurrency:

    @pytest.mark.parametrize("amount, expected", [
        (Decimal("625.5"), "R 625.50"),
        (1234567.891, "R 1,234,567.89"),
        (0, "R 0.00"),
        (Decimal("-12.345"), "-R 12.35"),
    ])
    def test_rand_format(self, amount, expected):
        assert format_currency(amount) == expected


class TestBreakdownFrame:

    def test_one_row_per_life(self, family_quote):
        df = breakdown_to_dataframe(family_quote)

        assert list(df.columns) == BREAKDOWN_COLUMNS
        assert list(df['Member']) == ["Main member", "Spouse 1", "Child 2", "Extended 1"]
        assert list(df['Premium']) == [251.5, 0.0, 0.0, 374.0]

    def test_missing_ages_kept_as_na(self, family_quote):
        df = breakdown_to_dataframe(family_quote)

        assert str(df['Age'].dtype) == "Int64"
        assert df['Age'].isna().tolist() == [False, True, False, False]

    def test_premiums_sum_to_total(self, family_quote):
        df = breakdown_to_dataframe(family_quote)
        assert df['Premium'].sum() == pytest.approx(float(family_quote.total_premium))


class TestQuoteWorkbook:

    def test_export_round_trip(self, family_quote, tmp_path):
        path = export_quote_workbook(family_quote, tmp_path / "quote.xlsx")

        wb = load_workbook(path)
        assert wb.sheetnames == ["Summary", "Breakdown"]

        summary = wb["Summary"]
        assert summary['B3'].value == "Main Member, Spouse and up to 6 Children"
        assert summary['B4'].value == 251.5
        assert summary['B5'].value == 374.0
        assert summary['B6'].value == 625.5

        breakdown = wb["Breakdown"]
        assert breakdown.max_row == 5, "Header plus four covered lives"
        assert [c.value for c in breakdown[1]] == BREAKDOWN_COLUMNS
        assert breakdown['C3'].value is None
        assert breakdown['E5'].value == 374.0

    def test_custom_title(self, family_quote, tmp_path):
        path = export_quote_workbook(family_quote, tmp_path / "quote.xlsx",
                                     title="Smith Family Quote")
        assert load_workbook(path)["Summary"]['A1'].value == "Smith Family Quote"

    def test_save_without_workbook_rejected(self, tmp_path):
        with pytest.raises(ValueError, match="No workbook"):
            QuoteWorkbookWriter().save(tmp_path / "empty.xlsx")
