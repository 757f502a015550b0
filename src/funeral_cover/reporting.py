"""
funeral_cover/reporting.py - Quote Presentation and Excel Export

Produces display-ready output for a priced quote:
1. Rand currency formatting
2. Per-life breakdown as a pandas DataFrame
3. Client-ready Excel quote workbook (Summary + Breakdown sheets)

Author: Funeral Cover Pricing Project
License: MIT
"""

from decimal import Decimal
from pathlib import Path
from typing import Any, List, Optional, Union
import logging

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from .calculator import CalculationResult, round_money

logger = logging.getLogger(__name__)


BREAKDOWN_COLUMNS = ['Member', 'Relationship', 'Age', 'CoverAmount', 'Premium']


def format_currency(amount: Union[Decimal, float, int]) -> str:
    """Format as South African rand, e.g. R 1,234.56."""
    value = round_money(Decimal(str(amount)))
    sign = '-' if value < 0 else ''
    return f"{sign}R {abs(value):,.2f}"


def breakdown_to_dataframe(result: CalculationResult) -> pd.DataFrame:
    """One row per covered life, main member first."""
    breakdown = result.breakdown
    rows = [{
        'Member': 'Main member',
        'Relationship': 'main',
        'Age': breakdown.main_member.age,
        'CoverAmount': float(breakdown.main_member.cover_amount),
        'Premium': float(breakdown.main_member.premium),
    }]

    for i, member in enumerate(breakdown.immediate_family, start=1):
        rows.append({
            'Member': f"{member.relationship.value.capitalize()} {i}",
            'Relationship': member.relationship.value,
            'Age': member.age,
            'CoverAmount': float(member.cover_amount),
            'Premium': float(member.premium),
        })

    for i, member in enumerate(breakdown.extended_family, start=1):
        rows.append({
            'Member': f"Extended {i}",
            'Relationship': 'extended',
            'Age': member.age,
            'CoverAmount': float(member.cover_amount),
            'Premium': float(member.premium),
        })

    df = pd.DataFrame(rows, columns=BREAKDOWN_COLUMNS)
    df['Age'] = df['Age'].astype('Int64')
    return df


# =============================================================================
# EXCEL QUOTE WORKBOOK
# =============================================================================

class QuoteWorkbookWriter:
    """
    Writes a priced quote to an Excel workbook.

    Sheets:
    - Summary: benefit option and premium totals
    - Breakdown: one row per covered life
    """

    def __init__(self, title: str = "Funeral Cover Quote"):
        self.title = title
        self.workbook: Optional[Workbook] = None

        self.currency_format = '"R" #,##0.00'
        self.title_font = Font(bold=True, size=14)
        self.header_font_white = Font(bold=True, size=11, color="FFFFFF")
        self.header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")

    def create_new_workbook(self) -> None:
        self.workbook = Workbook()
        if 'Sheet' in self.workbook.sheetnames:
            del self.workbook['Sheet']
        self.workbook.create_sheet("Summary")
        self.workbook.create_sheet("Breakdown")

    def populate_from_result(self, result: CalculationResult) -> None:
        if self.workbook is None:
            self.create_new_workbook()
        self._populate_summary(result)
        self._populate_breakdown(result)

    def _populate_summary(self, result: CalculationResult) -> None:
        sheet = self.workbook["Summary"]
        sheet['A1'] = self.title
        sheet['A1'].font = self.title_font

        sheet['A3'] = "Benefit Option"
        sheet['B3'] = result.benefit_option_used.value

        money_rows = [
            ("Main Policy Premium", result.main_policy_premium),
            ("Extended Family Premium", result.extended_family_premium),
            ("Total Monthly Premium", result.total_premium),
        ]
        for i, (label, amount) in enumerate(money_rows, start=4):
            sheet[f'A{i}'] = label
            sheet[f'B{i}'] = float(amount)
            sheet[f'B{i}'].number_format = self.currency_format

        sheet['A6'].font = Font(bold=True)
        sheet['B6'].font = Font(bold=True)
        sheet.column_dimensions['A'].width = 28
        sheet.column_dimensions['B'].width = 44

    def _populate_breakdown(self, result: CalculationResult) -> None:
        sheet = self.workbook["Breakdown"]
        df = breakdown_to_dataframe(result)

        for col, header in enumerate(BREAKDOWN_COLUMNS, start=1):
            cell = sheet.cell(row=1, column=col, value=header)
            cell.font = self.header_font_white
            cell.fill = self.header_fill
            cell.alignment = Alignment(horizontal='center')

        for row_idx, row in enumerate(df.itertuples(index=False), start=2):
            values: List[Any] = [
                row.Member,
                row.Relationship,
                None if pd.isna(row.Age) else int(row.Age),
                row.CoverAmount,
                row.Premium,
            ]
            for col, value in enumerate(values, start=1):
                cell = sheet.cell(row=row_idx, column=col, value=value)
                if col >= 4:
                    cell.number_format = self.currency_format

        for col in range(1, len(BREAKDOWN_COLUMNS) + 1):
            sheet.column_dimensions[get_column_letter(col)].width = 18

    def save(self, output_path: Union[str, Path]) -> Path:
        output_path = Path(output_path)
        if self.workbook is None:
            raise ValueError("No workbook to save - call populate_from_result() first")

        self.workbook.save(output_path)
        logger.info(f"Saved quote workbook to: {output_path}")
        return output_path


def export_quote_workbook(result: CalculationResult,
                          output_path: Union[str, Path],
                          title: str = "Funeral Cover Quote") -> Path:
    """Write a quote workbook in one call."""
    writer = QuoteWorkbookWriter(title=title)
    writer.populate_from_result(result)
    return writer.save(output_path)
