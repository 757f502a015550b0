"""
funeral_cover/rate_table.py - Age-Banded Rate Table

Turns the business rate card (one row per benefit option and age band) into
an immutable lookup structure:

    normalized option key -> sorted tuple of ProcessedRateBand

Rates are office premiums per R1000 of cover. Bands are closed intervals
[min_age, max_age] and may not overlap within an option, so the band for an
age is found by binary search over the sorted min ages.

Rate cards are usually maintained in a spreadsheet; load_rate_table() reads
CSV/XLSX with pandas and records the file's SHA-256 for the audit trail.

Author: Funeral Cover Pricing Project
License: MIT
"""

import hashlib
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np
import pandas as pd

from .errors import ConfigurationError, RateNotFoundError

logger = logging.getLogger(__name__)


AGE_BAND_PATTERN = re.compile(r'(\d+)\s*-\s*(\d+)')
LINE_BREAK_PATTERN = re.compile(r'\r?\n')


# =============================================================================
# KEY NORMALIZATION AND PARSING
# =============================================================================

def normalize_benefit_option(raw: Any) -> str:
    """
    Canonical form of a benefit option label.

    Rules, applied in order:
    1. Remove every literal double quote
    2. Replace each line break (CRLF or LF) with a single space
    3. Strip leading and trailing whitespace

    Spreadsheet exports wrap multi-line header cells in quotes, e.g.
    '"Main Member, Spouse\\nand up to 6 Children"'.
    """
    text = str(raw).replace('"', '')
    text = LINE_BREAK_PATTERN.sub(' ', text)
    return text.strip()


def parse_age_band(age_band: Any) -> Tuple[int, int]:
    """Parse '(18 - 65)' into (18, 65)."""
    match = AGE_BAND_PATTERN.search(str(age_band))
    if not match:
        raise ConfigurationError(f"Invalid age band format: {age_band}")

    min_age, max_age = int(match.group(1)), int(match.group(2))
    if min_age > max_age:
        raise ConfigurationError(
            f"Invalid age band {age_band}: minimum age exceeds maximum age"
        )
    return min_age, max_age


def parse_rate(value: Any) -> Decimal:
    """Convert a rate cell to Decimal (floats go through str to keep 1.8 == 1.8)."""
    if isinstance(value, Decimal):
        rate = value
    else:
        try:
            rate = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ConfigurationError(f"Invalid rate value: {value!r}")

    if not rate.is_finite() or rate < 0:
        raise ConfigurationError(f"Invalid rate value: {value!r}")
    return rate


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class RateEntry:
    """A single raw row of the rate card."""
    benefit_option: str
    age_band: str
    rate: Union[Decimal, float, str]


@dataclass(frozen=True)
class ProcessedRateBand:
    """Parsed age band with its rate."""
    min_age: int
    max_age: int
    rate: Decimal

    def covers(self, age: int) -> bool:
        return self.min_age <= age <= self.max_age


@dataclass(frozen=True)
class RateTable:
    """
    Immutable rate lookup, normally built by build_rate_table().

    Direct construction gets the same guarantees: keys are normalized, bands
    are sorted by min_age and checked for overlap, and the mapping is wrapped
    read-only. Safe to share between threads.
    """
    bands_by_option: Mapping[str, Tuple[ProcessedRateBand, ...]]
    source_hash: Optional[str] = None
    _min_ages: Mapping[str, np.ndarray] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self):
        bands_by_option = {}
        min_ages = {}
        for raw_key, bands in self.bands_by_option.items():
            key = normalize_benefit_option(raw_key)
            if not key:
                raise ConfigurationError("Benefit option name cannot be blank")
            if key in bands_by_option:
                raise ConfigurationError(f'Duplicate benefit option: "{key}"')

            bands = tuple(sorted(bands, key=lambda band: band.min_age))
            for previous, current in zip(bands, bands[1:]):
                if current.min_age <= previous.max_age:
                    raise ConfigurationError(
                        f'Overlapping age bands for "{key}": '
                        f'({previous.min_age} - {previous.max_age}) and '
                        f'({current.min_age} - {current.max_age})'
                    )
            bands_by_option[key] = bands

            vector = np.array([band.min_age for band in bands], dtype=np.int64)
            vector.flags.writeable = False
            min_ages[key] = vector

        object.__setattr__(self, 'bands_by_option', MappingProxyType(bands_by_option))
        object.__setattr__(self, '_min_ages', MappingProxyType(min_ages))

    # -------------------------------------------------------------------------
    # Construction helpers
    # -------------------------------------------------------------------------

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]],
                     source_hash: Optional[str] = None) -> "RateTable":
        """
        Build from dict rows.

        Accepts camelCase ('benefitOption', 'ageBand') as well as
        snake_case ('benefit_option', 'age_band') keys.
        """
        return build_rate_table(records, source_hash=source_hash)

    @classmethod
    def from_dataframe(cls, df: pd.DataFrame,
                       source_hash: Optional[str] = None) -> "RateTable":
        """Build from a DataFrame whose columns match RATE_COLUMN_ALIASES."""
        df = _standardize_columns(df)
        missing = [c for c in ('benefit_option', 'age_band', 'rate')
                   if c not in df.columns]
        if missing:
            raise ConfigurationError(f"Rate card missing required columns: {missing}")

        df = df.dropna(how='all', subset=['benefit_option', 'age_band', 'rate'])

        # Merged option cells export as blanks below the first row
        blank = df['benefit_option'].isna() | (
            df['benefit_option'].astype(str).str.strip() == ''
        )
        if blank.any():
            rows = [int(i) + 2 if isinstance(i, (int, np.integer)) else i
                    for i in df.index[blank]]
            raise ConfigurationError(
                f"Rate card rows missing a benefit option (spreadsheet rows {rows})"
            )

        entries = [
            RateEntry(row.benefit_option, row.age_band, row.rate)
            for row in df[['benefit_option', 'age_band', 'rate']].itertuples(index=False)
        ]
        return build_rate_table(entries, source_hash=source_hash)

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def lookup(self, benefit_option: str, age: int) -> Decimal:
        """
        Rate per R1000 for the given option and age.

        Raises:
            RateNotFoundError: unknown option, or no band covers the age
        """
        key = normalize_benefit_option(benefit_option)
        bands = self.bands_by_option.get(key)
        if bands is None:
            raise RateNotFoundError(
                f'Benefit option not found: "{benefit_option}"',
                benefit_option=key, age=age
            )

        # Last band starting at or before the age is the only candidate
        idx = int(np.searchsorted(self._min_ages[key], age, side='right')) - 1
        if idx < 0 or not bands[idx].covers(age):
            raise RateNotFoundError(
                f'No applicable age band found for age {age} under option "{key}"',
                benefit_option=key, age=age
            )

        rate = bands[idx].rate
        logger.debug(f"Rate lookup: {key} age {age} -> {rate}")
        return rate

    def bands(self, benefit_option: str) -> Tuple[ProcessedRateBand, ...]:
        key = normalize_benefit_option(benefit_option)
        if key not in self.bands_by_option:
            raise RateNotFoundError(
                f'Benefit option not found: "{benefit_option}"', benefit_option=key
            )
        return self.bands_by_option[key]

    def age_range(self, benefit_option: str) -> Tuple[int, int]:
        """Lowest and highest age priced under an option."""
        bands = self.bands(benefit_option)
        return bands[0].min_age, max(band.max_age for band in bands)

    @property
    def benefit_options(self) -> List[str]:
        return list(self.bands_by_option.keys())

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame([
            {
                'BenefitOption': key,
                'MinAge': band.min_age,
                'MaxAge': band.max_age,
                'Rate': float(band.rate),
            }
            for key, bands in self.bands_by_option.items()
            for band in bands
        ])

    def __contains__(self, benefit_option: object) -> bool:
        return normalize_benefit_option(benefit_option) in self.bands_by_option

    def __len__(self) -> int:
        return len(self.bands_by_option)


# =============================================================================
# FACTORY
# =============================================================================

def build_rate_table(rows: Iterable[Union[RateEntry, Mapping[str, Any]]],
                     source_hash: Optional[str] = None) -> RateTable:
    """
    Build an immutable RateTable from raw rate rows.

    Raises:
        ConfigurationError: malformed age band or rate, or overlapping bands
    """
    grouped: Dict[str, List[ProcessedRateBand]] = {}
    row_count = 0

    for i, raw in enumerate(rows):
        row = raw if isinstance(raw, RateEntry) else _record_to_entry(raw, i)
        key = normalize_benefit_option(row.benefit_option)
        if not key:
            raise ConfigurationError(f"Rate row {i} has a blank benefit option")
        min_age, max_age = parse_age_band(row.age_band)
        grouped.setdefault(key, []).append(
            ProcessedRateBand(min_age=min_age, max_age=max_age, rate=parse_rate(row.rate))
        )
        row_count += 1

    table = RateTable(bands_by_option=grouped, source_hash=source_hash)
    logger.info(f"Rate table built: {len(table)} benefit options, {row_count} bands")
    return table


# =============================================================================
# FILE LOADING
# =============================================================================

RATE_COLUMN_ALIASES = {
    'benefitoption': 'benefit_option', 'option': 'benefit_option',
    'benefit': 'benefit_option', 'coveroption': 'benefit_option',
    'plan': 'benefit_option', 'plantype': 'benefit_option',
    'ageband': 'age_band', 'agerange': 'age_band', 'ages': 'age_band',
    'entryage': 'age_band', 'age': 'age_band',
    'rate': 'rate', 'officepremium': 'rate', 'premiumrate': 'rate',
    'rateperr1000': 'rate', 'officepremiumperr1000': 'rate',
}


def load_rate_table(filepath: Union[str, Path],
                    sheet_name: Optional[Union[str, int]] = None) -> RateTable:
    """
    Load a rate card from CSV or Excel.

    Args:
        filepath: Path to .csv, .xlsx or .xls file
        sheet_name: Sheet for Excel files (first sheet when omitted)

    Returns:
        RateTable with source_hash set to the file's SHA-256
    """
    filepath = Path(filepath)
    suffix = filepath.suffix.lower()
    if suffix not in ('.csv', '.xlsx', '.xls'):
        raise ConfigurationError(f"Unsupported rate card format: {filepath.suffix}")
    if not filepath.exists():
        raise ConfigurationError(f"Rate card not found: {filepath}")

    file_hash = _hash_file(filepath)
    logger.info(f"Loading rate card: {filepath.name} (SHA-256: {file_hash[:16]}...)")

    if suffix == '.csv':
        df = pd.read_csv(filepath)
    else:
        df = pd.read_excel(filepath, sheet_name=sheet_name if sheet_name is not None else 0)

    return RateTable.from_dataframe(df, source_hash=file_hash)


def _hash_file(filepath: Path) -> str:
    sha256 = hashlib.sha256()
    with open(filepath, 'rb') as f:
        for chunk in iter(lambda: f.read(8192), b''):
            sha256.update(chunk)
    return sha256.hexdigest()


def _standardize_columns(df: pd.DataFrame) -> pd.DataFrame:
    rename_map = {}
    for col in df.columns:
        col_key = normalize_benefit_option(col).lower()
        col_key = re.sub(r'[^a-z0-9]', '', col_key)
        if col_key in RATE_COLUMN_ALIASES:
            rename_map[col] = RATE_COLUMN_ALIASES[col_key]
    return df.rename(columns=rename_map) if rename_map else df


def _record_to_entry(record: Mapping[str, Any], index: int) -> RateEntry:
    """Accept camelCase or snake_case dict rows."""
    if not isinstance(record, Mapping):
        raise ConfigurationError(f"Rate row {index} is not a mapping: {record!r}")

    option = _first_present(record, ('benefitOption', 'benefit_option'))
    age_band = _first_present(record, ('ageBand', 'age_band'))
    rate = record.get('rate')
    if option is None or age_band is None or rate is None:
        raise ConfigurationError(
            f"Rate row {index} must define benefit option, age band and rate"
        )
    return RateEntry(option, age_band, rate)


def _first_present(record: Mapping[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if record.get(key) is not None:
            return record[key]
    return None
