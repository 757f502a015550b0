"""
funeral_cover/rates.py - Shipped Funeral Cover Rate Card

Office premiums per R1000 of cover per month, by benefit option and
main-member age band. Extended family members are rated on their own age,
including children of the extended family (ages 0-17).

Author: Funeral Cover Pricing Project
License: MIT
"""

from decimal import Decimal
from typing import Dict, List, Tuple

from .rate_table import RateEntry, RateTable, build_rate_table


# =============================================================================
# RATE CARD
# =============================================================================

FUNERAL_RATE_CARD: Dict[str, Dict[Tuple[int, int], str]] = {
    "Main Member Only": {
        (18, 65): "1.80", (66, 75): "4.93", (76, 80): "12.06",
        (81, 85): "17.71", (86, 90): "25.80", (91, 95): "36.73",
        (96, 100): "49.57",
    },
    "Main Member and Spouse": {
        (18, 65): "2.87", (66, 75): "7.90", (76, 80): "19.29",
        (81, 85): "28.34", (86, 90): "41.27", (91, 95): "58.77",
        (96, 100): "79.30",
    },
    "Main Member and up to 6 Children": {
        (18, 65): "2.70", (66, 75): "7.40", (76, 80): "18.09",
        (81, 85): "26.57", (86, 90): "38.70", (91, 95): "55.10",
        (96, 100): "74.34",
    },
    "Main Member, Spouse and up to 6 Children": {
        (18, 65): "4.31", (66, 75): "11.84", (76, 80): "28.93",
        (81, 85): "42.51", (86, 90): "61.91", (91, 95): "88.16",
        (96, 100): "118.96",
    },
    "Main Member and 2 Spouses": {
        (18, 65): "4.60", (66, 75): "12.63", (76, 80): "30.86",
        (81, 85): "45.36", (86, 90): "66.04", (91, 95): "94.03",
        (96, 100): "126.89",
    },
    "Main Member, 2 Spouses and up to 6 Children": {
        (18, 65): "6.90", (66, 75): "18.94", (76, 80): "46.30",
        (81, 85): "68.03", (86, 90): "99.07", (91, 95): "141.04",
        (96, 100): "190.33",
    },
    "Extended family": {
        (0, 17): "0.40", (18, 65): "1.97", (66, 75): "6.41",
        (76, 80): "16.87", (81, 85): "26.57", (86, 90): "38.70",
        (91, 95): "55.10", (96, 100): "74.34",
    },
}

FUNERAL_RATE_DATA: List[RateEntry] = [
    RateEntry(benefit_option=option, age_band=f"({low} - {high})", rate=Decimal(rate))
    for option, bands in FUNERAL_RATE_CARD.items()
    for (low, high), rate in bands.items()
]


def create_default_rate_table() -> RateTable:
    """Rate table over the shipped rate card."""
    return build_rate_table(FUNERAL_RATE_DATA)
