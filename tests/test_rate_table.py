"""
tests/test_rate_table.py - Rate Table Construction and Lookup Tests

Covers:
1. Benefit option key normalization
2. Age band parsing and rate parsing
3. Inclusive band lookup and out-of-range failures
4. Immutability of the built table
5. Loading rate cards from records, DataFrames, CSV and Excel

Author: Funeral Cover Pricing Project
License: MIT
"""

import dataclasses
from decimal import Decimal

import pandas as pd
import pytest

from funeral_cover.errors import ConfigurationError, RateNotFoundError
from funeral_cover.rate_table import (
    ProcessedRateBand,
    RateEntry,
    RateTable,
    build_rate_table,
    load_rate_table,
    normalize_benefit_option,
    parse_age_band,
    parse_rate,
)
from funeral_cover.rates import FUNERAL_RATE_DATA, create_default_rate_table


SAMPLE_ROWS = [
    {"benefitOption": "Main Member Only", "ageBand": "(18 - 65)", "rate": 2.10},
    {"benefitOption": "Main Member Only", "ageBand": "(66 - 75)", "rate": 5.75},
    {"benefitOption": "Main Member Only", "ageBand": "(76 - 80)", "rate": 14.07},
    {"benefitOption": "Extended family", "ageBand": "(0 - 17)", "rate": 0.47},
    {"benefitOption": "Extended family", "ageBand": "(18 - 65)", "rate": 2.30},
    {"benefitOption": "Extended family", "ageBand": "(66 - 75)", "rate": 7.48},
]


class TestKeyNormalization:
    """Spreadsheet labels must collapse to the canonical benefit option key."""

    def test_quotes_and_newlines_removed(self):
        raw = '"Main Member, Spouse\nand up to 6 Children"'
        assert normalize_benefit_option(raw) == "Main Member, Spouse and up to 6 Children"

    def test_crlf_becomes_single_space(self):
        raw = 'Main Member and\r\nSpouse'
        assert normalize_benefit_option(raw) == "Main Member and Spouse"

    def test_outer_whitespace_trimmed(self):
        assert normalize_benefit_option("  Extended family \t") == "Extended family"

    def test_normalization_is_idempotent(self):
        once = normalize_benefit_option('"Main Member\nOnly "')
        assert normalize_benefit_option(once) == once


class TestAgeBandParsing:

    @pytest.mark.parametrize("text, expected", [
        ("(18 - 65)", (18, 65)),
        ("(0 - 17)", (0, 17)),
        ("96-100", (96, 100)),
        ("( 66 -75 )", (66, 75)),
    ])
    def test_valid_bands(self, text, expected):
        assert parse_age_band(text) == expected

    @pytest.mark.parametrize("text", ["eighteen to sixty", "(18)", "", "18 to 65"])
    def test_malformed_band_raises_configuration_error(self, text):
        with pytest.raises(ConfigurationError, match="Invalid age band"):
            parse_age_band(text)

    def test_inverted_band_rejected(self):
        with pytest.raises(ConfigurationError):
            parse_age_band("(65 - 18)")

    def test_float_rate_keeps_its_decimal_text(self):
        assert parse_rate(1.8) == Decimal("1.8")
        assert str(parse_rate(1.8)) == "1.8"

    @pytest.mark.parametrize("value", ["abc", -1, float("nan")])
    def test_bad_rates_rejected(self, value):
        with pytest.raises(ConfigurationError, match="Invalid rate"):
            parse_rate(value)


class TestBuild:

    def test_build_groups_by_normalized_key(self):
        rows = [
            RateEntry('"Main Member\nOnly"', "(18 - 65)", 2.10),
            RateEntry("Main Member Only ", "(66 - 75)", 5.75),
        ]
        table = build_rate_table(rows)

        assert table.benefit_options == ["Main Member Only"]
        assert len(table.bands("Main Member Only")) == 2

    def test_bands_sorted_by_min_age(self):
        rows = list(reversed(SAMPLE_ROWS))
        table = build_rate_table(rows)

        min_ages = [band.min_age for band in table.bands("Extended family")]
        assert min_ages == sorted(min_ages), f"Bands not sorted: {min_ages}"

    def test_malformed_age_band_fails_whole_build(self):
        rows = SAMPLE_ROWS + [
            {"benefitOption": "Main Member Only", "ageBand": "(eighty+)", "rate": 20.0}
        ]
        with pytest.raises(ConfigurationError):
            build_rate_table(rows)

    def test_overlapping_bands_rejected(self):
        rows = [
            RateEntry("Main Member Only", "(18 - 65)", "2.10"),
            RateEntry("Main Member Only", "(60 - 75)", "5.75"),
        ]
        with pytest.raises(ConfigurationError, match="Overlapping"):
            build_rate_table(rows)

    @pytest.mark.parametrize("option", ["", "   ", '""', "\n"])
    def test_blank_benefit_option_rejected(self, option):
        rows = SAMPLE_ROWS + [{"benefitOption": option, "ageBand": "(81 - 85)", "rate": 20.0}]
        with pytest.raises(ConfigurationError, match="blank benefit option"):
            build_rate_table(rows)

    def test_direct_construction_sorts_and_freezes(self):
        bands = {
            '"Main Member\nOnly"': [
                ProcessedRateBand(66, 75, Decimal("5.75")),
                ProcessedRateBand(18, 65, Decimal("2.10")),
            ]
        }
        table = RateTable(bands_by_option=bands)
        bands['"Main Member\nOnly"'].append(ProcessedRateBand(76, 80, Decimal("14.07")))

        assert [b.min_age for b in table.bands("Main Member Only")] == [18, 66]
        assert table.lookup("Main Member Only", 70) == Decimal("5.75")
        with pytest.raises(TypeError):
            table.bands_by_option["Extended family"] = ()

    def test_direct_construction_rejects_overlap(self):
        with pytest.raises(ConfigurationError, match="Overlapping"):
            RateTable(bands_by_option={
                "Main Member Only": [
                    ProcessedRateBand(18, 65, Decimal("2.10")),
                    ProcessedRateBand(60, 75, Decimal("5.75")),
                ]
            })

    def test_row_missing_rate_rejected(self):
        with pytest.raises(ConfigurationError):
            build_rate_table([{"benefitOption": "Main Member Only", "ageBand": "(18 - 65)"}])

    def test_snake_case_records_accepted(self):
        table = RateTable.from_records([
            {"benefit_option": "Main Member Only", "age_band": "(18 - 65)", "rate": "2.10"}
        ])
        assert table.lookup("Main Member Only", 40) == Decimal("2.10")

    def test_shipped_rate_card_builds(self):
        table = create_default_rate_table()

        assert len(table) == 7
        assert table.age_range("Extended family") == (0, 100)
        assert len(table.to_dataframe()) == len(FUNERAL_RATE_DATA)


class TestLookup:
    """
    For every age in [min_age, max_age] (both inclusive) the band's rate is
    returned; ages outside every band fail.
    """

    @pytest.fixture
    def table(self):
        return build_rate_table(SAMPLE_ROWS)

    @pytest.mark.parametrize("age, expected", [
        (18, "2.10"), (35, "2.10"), (65, "2.10"),
        (66, "5.75"), (75, "5.75"),
        (76, "14.07"), (80, "14.07"),
    ])
    def test_inclusive_band_bounds(self, table, age, expected):
        rate = table.lookup("Main Member Only", age)
        assert rate == Decimal(expected), f"Age {age}: expected {expected}, got {rate}"

    def test_every_age_in_band_returns_band_rate(self, table):
        for band in table.bands("Extended family"):
            for age in range(band.min_age, band.max_age + 1):
                assert table.lookup("Extended family", age) == band.rate

    def test_lookup_normalizes_key(self, table):
        assert table.lookup('"Main Member\nOnly"', 40) == Decimal("2.10")

    def test_age_above_table_raises(self, table):
        with pytest.raises(RateNotFoundError, match="No applicable age band") as exc_info:
            table.lookup("Main Member Only", 81)
        assert exc_info.value.age == 81

    def test_age_below_table_raises(self, table):
        with pytest.raises(RateNotFoundError):
            table.lookup("Main Member Only", 17)

    def test_unknown_option_raises(self, table):
        with pytest.raises(RateNotFoundError, match="Benefit option not found"):
            table.lookup("Main Member and Spouse", 40)

    def test_gap_between_bands_raises(self):
        table = build_rate_table([
            RateEntry("Main Member Only", "(18 - 30)", "1.00"),
            RateEntry("Main Member Only", "(40 - 50)", "2.00"),
        ])
        with pytest.raises(RateNotFoundError):
            table.lookup("Main Member Only", 35)

    def test_contains(self, table):
        assert "Extended family" in table
        assert " Extended family\n" in table
        assert "Main Member and Spouse" not in table


class TestImmutability:

    def test_band_mapping_is_read_only(self):
        table = build_rate_table(SAMPLE_ROWS)
        with pytest.raises(TypeError):
            table.bands_by_option["Main Member Only"] = ()

    def test_table_attributes_frozen(self):
        table = build_rate_table(SAMPLE_ROWS)
        with pytest.raises(dataclasses.FrozenInstanceError):
            table.source_hash = "tampered"

    def test_bands_are_tuples(self):
        table = build_rate_table(SAMPLE_ROWS)
        assert isinstance(table.bands("Main Member Only"), tuple)


class TestRateCardFiles:

    @pytest.fixture
    def rate_df(self):
        return pd.DataFrame({
            "Benefit Option": [r["benefitOption"] for r in SAMPLE_ROWS],
            "Age Band": [r["ageBand"] for r in SAMPLE_ROWS],
            "Office Premium": [r["rate"] for r in SAMPLE_ROWS],
        })

    def test_from_dataframe_with_aliased_columns(self, rate_df):
        table = RateTable.from_dataframe(rate_df)
        assert table.lookup("Extended family", 70) == Decimal("7.48")

    def test_missing_column_rejected(self, rate_df):
        with pytest.raises(ConfigurationError, match="missing required columns"):
            RateTable.from_dataframe(rate_df.drop(columns=["Office Premium"]))

    def test_blank_option_cell_rejected(self, rate_df):
        """A blank option cell (merged in the spreadsheet) must not build a 'nan' option."""
        rate_df.loc[1, "Benefit Option"] = None

        with pytest.raises(ConfigurationError, match="missing a benefit option") as exc_info:
            RateTable.from_dataframe(rate_df)
        assert "[3]" in exc_info.value.message, "Error should name the spreadsheet row"

    def test_blank_option_cell_in_csv_rejected(self, rate_df, tmp_path):
        rate_df.loc[4, "Benefit Option"] = ""
        path = tmp_path / "rates.csv"
        rate_df.to_csv(path, index=False)

        with pytest.raises(ConfigurationError, match="missing a benefit option"):
            load_rate_table(path)

    def test_load_csv_records_file_hash(self, rate_df, tmp_path):
        path = tmp_path / "rates.csv"
        rate_df.to_csv(path, index=False)

        table = load_rate_table(path)

        assert table.lookup("Main Member Only", 65) == Decimal("2.10")
        assert table.source_hash is not None and len(table.source_hash) == 64

    def test_load_excel(self, rate_df, tmp_path):
        path = tmp_path / "rates.xlsx"
        rate_df.to_excel(path, index=False)

        table = load_rate_table(path)

        assert table.lookup("Extended family", 10) == Decimal("0.47")

    def test_unsupported_format_rejected(self, tmp_path):
        path = tmp_path / "rates.txt"
        path.write_text("not a rate card")
        with pytest.raises(ConfigurationError, match="Unsupported"):
            load_rate_table(path)

    def test_missing_file_rejected(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_rate_table(tmp_path / "missing.csv")
