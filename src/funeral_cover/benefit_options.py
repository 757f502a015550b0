"""
funeral_cover/benefit_options.py - Benefit Option Tiers

The seven tiers of the rate card. Six price the main policy (main member
plus immediate family); "Extended family" prices each extended member on
their own.

Resolution priority:
    1. More than one spouse  -> 2-spouse tiers (with/without children)
    2. Spouse and children   -> Main Member, Spouse and up to 6 Children
    3. Spouse only           -> Main Member and Spouse
    4. Children only         -> Main Member and up to 6 Children
    5. Nobody else           -> Main Member Only

Author: Funeral Cover Pricing Project
License: MIT
"""

from enum import Enum
import logging

from .family import FamilyComposition

logger = logging.getLogger(__name__)


class BenefitOption(str, Enum):
    """Rate card benefit options (values are the normalized rate card keys)."""
    MAIN_MEMBER_ONLY = "Main Member Only"
    MAIN_MEMBER_AND_SPOUSE = "Main Member and Spouse"
    MAIN_MEMBER_AND_CHILDREN = "Main Member and up to 6 Children"
    MAIN_MEMBER_SPOUSE_AND_CHILDREN = "Main Member, Spouse and up to 6 Children"
    MAIN_MEMBER_AND_2_SPOUSES = "Main Member and 2 Spouses"
    MAIN_MEMBER_2_SPOUSES_AND_CHILDREN = "Main Member, 2 Spouses and up to 6 Children"
    EXTENDED_FAMILY = "Extended family"

    def __str__(self) -> str:
        return self.value


MAIN_POLICY_OPTIONS = tuple(o for o in BenefitOption if o is not BenefitOption.EXTENDED_FAMILY)


def resolve_benefit_option(has_spouse: bool, has_children: bool,
                           spouse_count: int = 0) -> BenefitOption:
    """Pick the main policy tier from the family flags."""
    if spouse_count > 1:
        # Unconfirmed with the business: no intake form currently allows a
        # second spouse.
        logger.warning(f"Two-spouse benefit option selected (spouse_count={spouse_count})")
        if has_children:
            return BenefitOption.MAIN_MEMBER_2_SPOUSES_AND_CHILDREN
        return BenefitOption.MAIN_MEMBER_AND_2_SPOUSES

    if has_spouse and has_children:
        return BenefitOption.MAIN_MEMBER_SPOUSE_AND_CHILDREN

    if has_spouse:
        return BenefitOption.MAIN_MEMBER_AND_SPOUSE

    if has_children:
        return BenefitOption.MAIN_MEMBER_AND_CHILDREN

    return BenefitOption.MAIN_MEMBER_ONLY


def resolve_for_composition(composition: FamilyComposition) -> BenefitOption:
    """Extended family members never influence the main policy tier."""
    return resolve_benefit_option(
        composition.has_spouse,
        composition.has_children,
        composition.spouse_count,
    )
