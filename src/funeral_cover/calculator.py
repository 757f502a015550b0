"""
funeral_cover/calculator.py - Funeral Cover Premium Calculator

Prices a funeral policy from the family composition and the rate card.

Pricing Formula (rates are per R1000 of cover):
    premium = round(cover_amount / 1000 × rate, 2)

Main policy:
    rate = RateTable[resolved benefit option][main member age]
    Spouses and children are included in this rate (premium 0 each).

Extended family (each member):
    rate = RateTable["Extended family"][member age]
    extended_family_premium = Σ rounded member premiums

Total:
    total_premium = round(main_policy_premium + extended_family_premium, 2)

A single cover amount applies to every life on the policy.

Author: Funeral Cover Pricing Project
License: MIT
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union
import logging

import numpy as np

from .benefit_options import BenefitOption, resolve_for_composition
from .config import QuoteRules
from .errors import Err, FuneralCoverError, Ok, Outcome, ValidationError
from .family import (
    EXTENDED_AGE_REQUIRED,
    FamilyComposition,
    FamilyMember,
    Relationship,
    analyze_family_composition,
    coerce_age,
    coerce_members,
)
from .rate_table import RateEntry, RateTable, build_rate_table
from .rates import FUNERAL_RATE_DATA

logger = logging.getLogger(__name__)


CENTS = Decimal("0.01")
PER_MILLE = Decimal("1000")
ZERO = Decimal("0.00")


def round_money(amount: Decimal) -> Decimal:
    """Round half-up to cents."""
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_UP)


def calculate_premium(cover_amount: Decimal, rate: Decimal) -> Decimal:
    """Premium = (Cover Amount / 1000) × Rate, rounded to cents."""
    return round_money(Decimal(cover_amount) / PER_MILLE * Decimal(rate))


# =============================================================================
# REQUEST
# =============================================================================

@dataclass
class CalculationParams:
    """A quote request."""
    main_member_age: int
    cover_amount: Decimal
    additional_members: List[FamilyMember] = field(default_factory=list)

    def __post_init__(self):
        self.main_member_age = coerce_age(self.main_member_age, 'main_member_age')
        self.cover_amount = _coerce_cover_amount(self.cover_amount)
        self.additional_members = coerce_members(self.additional_members)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CalculationParams":
        """
        Build from a form payload.

        Accepts camelCase ('mainMemberAge', 'coverAmount', 'additionalMembers')
        or snake_case keys.
        """
        if not isinstance(data, Mapping):
            raise ValidationError(f"Invalid quote request: {data!r}")

        age = _first_present(data, ('mainMemberAge', 'main_member_age'))
        cover = _first_present(data, ('coverAmount', 'cover_amount'))
        members = _first_present(data, ('additionalMembers', 'additional_members'))

        if age is None:
            raise ValidationError("Main member age is required", field='main_member_age')
        if cover is None:
            raise ValidationError("Cover amount is required", field='cover_amount')

        return cls(main_member_age=age, cover_amount=cover,
                   additional_members=members)


# =============================================================================
# RESULT
# =============================================================================

@dataclass(frozen=True)
class MemberPremium:
    """Main member line of the breakdown."""
    age: int
    cover_amount: Decimal
    premium: Decimal


@dataclass(frozen=True)
class ImmediateFamilyPremium:
    """
    Spouse or child line. The premium is always zero (included in the main
    policy rate); cover_amount is the shared policy cover, shown for display.
    """
    relationship: Relationship
    age: Optional[int]
    cover_amount: Decimal
    premium: Decimal = ZERO


@dataclass(frozen=True)
class ExtendedFamilyPremium:
    """Individually rated extended family member."""
    age: int
    cover_amount: Decimal
    premium: Decimal
    rate: Decimal


@dataclass(frozen=True)
class PremiumBreakdown:
    main_member: MemberPremium
    immediate_family: Tuple[ImmediateFamilyPremium, ...] = ()
    extended_family: Tuple[ExtendedFamilyPremium, ...] = ()


@dataclass(frozen=True)
class CalculationResult:
    """Complete quote with per-life breakdown."""
    main_policy_premium: Decimal
    extended_family_premium: Decimal
    total_premium: Decimal
    benefit_option_used: BenefitOption
    breakdown: PremiumBreakdown
    main_rate: Optional[Decimal] = None

    def to_dict(self) -> Dict[str, Any]:
        """
        Presentation-layer shape (camelCase keys, money as floats).

        A spouse or child entered without an age is emitted with
        'age': None. Consumers that expect a number (older quote screens
        showed 0) must substitute their own placeholder.
        """
        return {
            'mainPolicyPremium': float(self.main_policy_premium),
            'extendedFamilyPremium': float(self.extended_family_premium),
            'totalPremium': float(self.total_premium),
            'benefitOptionUsed': self.benefit_option_used.value,
            'breakdown': {
                'mainMember': {
                    'age': self.breakdown.main_member.age,
                    'coverAmount': float(self.breakdown.main_member.cover_amount),
                    'premium': float(self.breakdown.main_member.premium),
                },
                'immediateFamily': [
                    {
                        'relationship': m.relationship.value,
                        'age': m.age,
                        'coverAmount': float(m.cover_amount),
                        'premium': float(m.premium),
                    }
                    for m in self.breakdown.immediate_family
                ],
                'extendedFamily': [
                    {
                        'age': m.age,
                        'coverAmount': float(m.cover_amount),
                        'premium': float(m.premium),
                    }
                    for m in self.breakdown.extended_family
                ],
            },
        }


def assemble_result(params: CalculationParams,
                    composition: FamilyComposition,
                    benefit_option: BenefitOption,
                    main_rate: Decimal,
                    main_policy_premium: Decimal,
                    extended: Iterable[ExtendedFamilyPremium]) -> CalculationResult:
    """Combine the priced parts into a CalculationResult."""
    extended = tuple(extended)
    extended_family_premium = round_money(sum((m.premium for m in extended), ZERO))
    total_premium = round_money(main_policy_premium + extended_family_premium)

    immediate = tuple(
        ImmediateFamilyPremium(
            relationship=member.relationship,
            age=member.age,
            cover_amount=params.cover_amount,
        )
        for member in composition.immediate_family
    )

    return CalculationResult(
        main_policy_premium=main_policy_premium,
        extended_family_premium=extended_family_premium,
        total_premium=total_premium,
        benefit_option_used=benefit_option,
        breakdown=PremiumBreakdown(
            main_member=MemberPremium(
                age=params.main_member_age,
                cover_amount=params.cover_amount,
                premium=main_policy_premium,
            ),
            immediate_family=immediate,
            extended_family=extended,
        ),
        main_rate=main_rate,
    )


# =============================================================================
# CALCULATOR
# =============================================================================

class PremiumCalculator:
    """
    Stateless premium calculator over an immutable RateTable.

    One instance can serve any number of concurrent requests.

    Attributes:
        rate_table: Rate lookup built once at startup
        rules: Optional product limits checked before pricing
    """

    def __init__(self, rate_table: RateTable, rules: Optional[QuoteRules] = None):
        self.rate_table = rate_table
        self.rules = rules

    def calculate_total_premium(
        self, params: Union[CalculationParams, Mapping[str, Any]]
    ) -> CalculationResult:
        """
        Price a quote.

        Raises:
            ValidationError: invalid request or family composition
            RateNotFoundError: no rate for the resolved option / age
        """
        if not isinstance(params, CalculationParams):
            params = CalculationParams.from_dict(params)

        if self.rules is not None:
            self.rules.check(params)

        composition = analyze_family_composition(params.additional_members)
        benefit_option = resolve_for_composition(composition)

        main_rate = self.rate_table.lookup(benefit_option.value, params.main_member_age)
        main_policy_premium = calculate_premium(params.cover_amount, main_rate)

        extended = [
            self.price_extended_member(member, params.cover_amount)
            for member in composition.extended_family
        ]

        result = assemble_result(params, composition, benefit_option,
                                 main_rate, main_policy_premium, extended)
        logger.info(
            f"Quote priced: {benefit_option.value}, age {params.main_member_age}, "
            f"cover R{params.cover_amount:,.2f} -> total R{result.total_premium:,.2f}"
        )
        return result

    def calculate(self, params: Union[CalculationParams, Mapping[str, Any]]) -> Outcome:
        """
        Price a quote without raising.

        Returns:
            Ok(CalculationResult) or Err(kind, message, error)
        """
        try:
            return Ok(self.calculate_total_premium(params))
        except FuneralCoverError as exc:
            logger.info(f"Quote rejected ({exc.kind.value}): {exc.message}")
            return Err.from_exception(exc)

    def price_extended_member(self, member: FamilyMember,
                              cover_amount: Decimal) -> ExtendedFamilyPremium:
        """Rate one extended family member on their own age."""
        if member.age is None:
            raise ValidationError(EXTENDED_AGE_REQUIRED, field='age')

        rate = self.rate_table.lookup(BenefitOption.EXTENDED_FAMILY.value, member.age)
        premium = calculate_premium(cover_amount, rate)
        logger.debug(f"Extended member age {member.age}: rate {rate} -> R{premium}")
        return ExtendedFamilyPremium(age=member.age, cover_amount=cover_amount,
                                     premium=premium, rate=rate)


# =============================================================================
# FACTORY
# =============================================================================

def create_calculator(
    rate_rows: Optional[Iterable[Union[RateEntry, Mapping[str, Any]]]] = None,
    rules: Optional[QuoteRules] = None,
) -> PremiumCalculator:
    """
    Factory function to create a calculator.

    Args:
        rate_rows: Raw rate rows (defaults to the shipped rate card)
        rules: Optional product limits

    Returns:
        PremiumCalculator over a freshly built RateTable
    """
    rows = FUNERAL_RATE_DATA if rate_rows is None else rate_rows
    return PremiumCalculator(build_rate_table(rows), rules=rules)


def _coerce_cover_amount(value: Any) -> Decimal:
    if isinstance(value, (bool, np.bool_)):
        raise ValidationError(f"Invalid cover amount: {value!r}", field='cover_amount')
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid cover amount: {value!r}", field='cover_amount')

    if not amount.is_finite() or amount <= 0:
        raise ValidationError("Cover amount must be greater than zero", field='cover_amount')
    return amount


def _first_present(data: Mapping[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


if __name__ == "__main__":
    from .config import configure_logging

    configure_logging()

    calculator = create_calculator()
    examples = [
        CalculationParams(35, Decimal("50000")),
        CalculationParams(35, Decimal("50000"), [FamilyMember(Relationship.SPOUSE)]),
        CalculationParams(35, Decimal("50000"), [
            FamilyMember(Relationship.SPOUSE),
            FamilyMember(Relationship.CHILD),
            FamilyMember(Relationship.CHILD),
            FamilyMember(Relationship.EXTENDED, age=70),
        ]),
    ]

    print("=" * 60)
    print("FUNERAL COVER PREMIUM EXAMPLES")
    print("=" * 60)
    for params in examples:
        outcome = calculator.calculate(params)
        if outcome.is_ok:
            result = outcome.value
            print(f"\n{result.benefit_option_used.value}")
            print(f"  Main policy:     R{result.main_policy_premium:>10,.2f}")
            print(f"  Extended family: R{result.extended_family_premium:>10,.2f}")
            print(f"  Total:           R{result.total_premium:>10,.2f}")
        else:
            print(f"\nRejected: {outcome.message}")
