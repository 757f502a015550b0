"""
funeral_cover/config.py - Quote Rules and Logging Configuration

QuoteRules carries the product limits the application form enforces
before a quote is priced (main member age 18-100, cover R10,000-R500,000).
The calculator applies them when a QuoteRules instance is supplied.

Author: Funeral Cover Pricing Project
License: MIT
"""

from decimal import Decimal
from typing import Any, Optional, Union
import logging

from pydantic import BaseModel, Field, model_validator

from .errors import ValidationError
from .family import MAX_CHILDREN, Relationship

logger = logging.getLogger(__name__)


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class QuoteRules(BaseModel):
    """Product limits for a funeral cover quote."""
    min_main_member_age: int = Field(18, ge=0)
    max_main_member_age: int = Field(100, ge=0)
    min_cover_amount: Decimal = Field(Decimal("10000"), gt=0)
    max_cover_amount: Decimal = Field(Decimal("500000"), gt=0)
    max_children: int = Field(MAX_CHILDREN, ge=0, le=MAX_CHILDREN)
    max_extended_members: Optional[int] = Field(
        default=None, ge=0,
        description="Cap on extended family members (None = no cap)"
    )

    @model_validator(mode='after')
    def _check_ranges(self) -> "QuoteRules":
        if self.min_main_member_age > self.max_main_member_age:
            raise ValueError("min_main_member_age cannot exceed max_main_member_age")
        if self.min_cover_amount > self.max_cover_amount:
            raise ValueError("min_cover_amount cannot exceed max_cover_amount")
        return self

    def check(self, params: Any) -> None:
        """
        Validate a quote request against the product limits.

        Args:
            params: CalculationParams (or anything with main_member_age,
                    cover_amount and additional_members)

        Raises:
            ValidationError: first rule broken, with the offending field
        """
        age = params.main_member_age
        if age < self.min_main_member_age:
            raise ValidationError(
                f"Main member must be at least {self.min_main_member_age} years old",
                field='main_member_age'
            )
        if age > self.max_main_member_age:
            raise ValidationError(
                f"Maximum age is {self.max_main_member_age}",
                field='main_member_age'
            )

        cover = Decimal(params.cover_amount)
        if cover < self.min_cover_amount:
            raise ValidationError(
                f"Minimum cover amount is R{self.min_cover_amount:,.0f}",
                field='cover_amount'
            )
        if cover > self.max_cover_amount:
            raise ValidationError(
                f"Maximum cover amount is R{self.max_cover_amount:,.0f}",
                field='cover_amount'
            )

        members = params.additional_members or []
        children = sum(1 for m in members if m.relationship == Relationship.CHILD)
        if children > self.max_children:
            raise ValidationError(
                f"Maximum of {self.max_children} children can be covered under the main policy",
                field='additional_members'
            )

        if self.max_extended_members is not None:
            extended = sum(1 for m in members if m.relationship == Relationship.EXTENDED)
            if extended > self.max_extended_members:
                raise ValidationError(
                    f"Maximum of {self.max_extended_members} extended family members allowed",
                    field='additional_members'
                )


DEFAULT_QUOTE_RULES = QuoteRules()


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    """Install the standard log format on the root logger."""
    logging.basicConfig(level=level, format=LOG_FORMAT)
