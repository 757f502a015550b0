"""
Funeral Cover Premium Calculator

Rate-table-driven pricing engine for funeral cover policies: resolves the
benefit option from the family composition and prices the main policy and
each extended family member from an age-banded rate card.

Author: Funeral Cover Pricing Project
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Funeral Cover Pricing Project"

from .errors import (
    ErrorKind,
    FuneralCoverError,
    ConfigurationError,
    RateNotFoundError,
    ValidationError,
    Ok,
    Err,
)

from .rate_table import (
    RateEntry,
    ProcessedRateBand,
    RateTable,
    build_rate_table,
    load_rate_table,
    normalize_benefit_option,
    parse_age_band,
)

from .rates import (
    FUNERAL_RATE_CARD,
    FUNERAL_RATE_DATA,
    create_default_rate_table,
)

from .family import (
    Relationship,
    FamilyMember,
    FamilyComposition,
    analyze_family_composition,
)

from .benefit_options import (
    BenefitOption,
    resolve_benefit_option,
)

from .config import (
    QuoteRules,
    DEFAULT_QUOTE_RULES,
    configure_logging,
)

from .calculator import (
    CalculationParams,
    CalculationResult,
    PremiumBreakdown,
    MemberPremium,
    ImmediateFamilyPremium,
    ExtendedFamilyPremium,
    PremiumCalculator,
    calculate_premium,
    create_calculator,
)

from .reporting import (
    format_currency,
    breakdown_to_dataframe,
    QuoteWorkbookWriter,
    export_quote_workbook,
)

__all__ = [
    # Errors
    "ErrorKind",
    "FuneralCoverError",
    "ConfigurationError",
    "RateNotFoundError",
    "ValidationError",
    "Ok",
    "Err",

    # Rate table
    "RateEntry",
    "ProcessedRateBand",
    "RateTable",
    "build_rate_table",
    "load_rate_table",
    "normalize_benefit_option",
    "parse_age_band",
    "FUNERAL_RATE_CARD",
    "FUNERAL_RATE_DATA",
    "create_default_rate_table",

    # Family
    "Relationship",
    "FamilyMember",
    "FamilyComposition",
    "analyze_family_composition",

    # Benefit options
    "BenefitOption",
    "resolve_benefit_option",

    # Configuration
    "QuoteRules",
    "DEFAULT_QUOTE_RULES",
    "configure_logging",

    # Calculator
    "CalculationParams",
    "CalculationResult",
    "PremiumBreakdown",
    "MemberPremium",
    "ImmediateFamilyPremium",
    "ExtendedFamilyPremium",
    "PremiumCalculator",
    "calculate_premium",
    "create_calculator",

    # Reporting
    "format_currency",
    "breakdown_to_dataframe",
    "QuoteWorkbookWriter",
    "export_quote_workbook",
]
