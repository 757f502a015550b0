"""
funeral_cover/family.py - Family Composition Analysis

Classifies the additional lives on a funeral policy:

- Spouses and children (immediate family) are covered under the main policy
  rate; their ages do not affect pricing.
- Extended family members are rated individually on their own age, so an
  age is mandatory for them.

Author: Funeral Cover Pricing Project
License: MIT
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union
import logging

import numpy as np

from .errors import ValidationError

logger = logging.getLogger(__name__)


MAX_CHILDREN = 6
EXTENDED_AGE_REQUIRED = "Age is required for all extended family members"


class Relationship(str, Enum):
    """Relationship of an additional member to the main member."""
    SPOUSE = "spouse"
    CHILD = "child"
    EXTENDED = "extended"

    @classmethod
    def parse(cls, value: Any) -> "Relationship":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(
                f"Unknown relationship: {value!r} (expected spouse, child or extended)",
                field='relationship'
            )


@dataclass
class FamilyMember:
    """An additional life on the policy."""
    relationship: Relationship
    age: Optional[int] = None

    def __post_init__(self):
        self.relationship = Relationship.parse(self.relationship)
        if self.age is not None:
            self.age = coerce_age(self.age)

    @property
    def is_immediate_family(self) -> bool:
        return self.relationship in (Relationship.SPOUSE, Relationship.CHILD)

    @classmethod
    def from_value(cls, value: Union["FamilyMember", Mapping[str, Any]]) -> "FamilyMember":
        """Accept a FamilyMember or a {'relationship': ..., 'age': ...} dict."""
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            if 'relationship' not in value:
                raise ValidationError("Relationship is required for every family member",
                                      field='relationship')
            age = value.get('age')
            # Blank spreadsheet cells arrive as NaN
            if isinstance(age, (float, np.floating)) and np.isnan(age):
                age = None
            return cls(relationship=value['relationship'], age=age)
        raise ValidationError(f"Invalid family member: {value!r}", field='additional_members')


@dataclass(frozen=True)
class FamilyComposition:
    """Partitioned family with the flags the benefit option resolver needs."""
    spouses: Tuple[FamilyMember, ...] = field(default_factory=tuple)
    children: Tuple[FamilyMember, ...] = field(default_factory=tuple)
    extended_family: Tuple[FamilyMember, ...] = field(default_factory=tuple)

    @property
    def spouse_count(self) -> int:
        return len(self.spouses)

    @property
    def children_count(self) -> int:
        return len(self.children)

    @property
    def extended_family_count(self) -> int:
        return len(self.extended_family)

    @property
    def has_spouse(self) -> bool:
        return self.spouse_count > 0

    @property
    def has_children(self) -> bool:
        return self.children_count > 0

    @property
    def immediate_family(self) -> Tuple[FamilyMember, ...]:
        """Spouses first, then children."""
        return self.spouses + self.children


def analyze_family_composition(
    members: Optional[Sequence[Union[FamilyMember, Mapping[str, Any]]]] = None
) -> FamilyComposition:
    """
    Partition additional members and validate the composition rules.

    Raises:
        ValidationError: more than six children, or an extended member
                         without an age
    """
    members = coerce_members(members)

    spouses = tuple(m for m in members if m.relationship == Relationship.SPOUSE)
    children = tuple(m for m in members if m.relationship == Relationship.CHILD)
    extended = tuple(m for m in members if m.relationship == Relationship.EXTENDED)

    if len(children) > MAX_CHILDREN:
        raise ValidationError(
            f"Maximum of {MAX_CHILDREN} children can be covered under the main policy",
            field='additional_members'
        )

    for member in extended:
        if member.age is None:
            raise ValidationError(EXTENDED_AGE_REQUIRED, field='age')

    composition = FamilyComposition(spouses=spouses, children=children,
                                    extended_family=extended)
    logger.debug(
        f"Family composition: {composition.spouse_count} spouse(s), "
        f"{composition.children_count} child(ren), "
        f"{composition.extended_family_count} extended"
    )
    return composition


def coerce_age(value: Any, field_name: str = 'age') -> int:
    """Whole, non-negative ages only."""
    if isinstance(value, (bool, np.bool_)):
        raise ValidationError(f"Invalid age: {value!r}", field=field_name)
    if isinstance(value, (int, np.integer)):
        age = int(value)
    elif isinstance(value, (float, np.floating)) and float(value).is_integer():
        age = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        age = int(value.strip())
    else:
        raise ValidationError(f"Age must be a whole number, got {value!r}", field=field_name)

    if age < 0:
        raise ValidationError(f"Age cannot be negative: {age}", field=field_name)
    return age


def coerce_members(value: Any) -> List[FamilyMember]:
    """
    Normalize the additional-members field of a request.

    None means no additional members. Anything other than a list or tuple
    (a dict, a string, a number) is rejected rather than iterated.
    """
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValidationError(
            f"Additional members must be a list, got {type(value).__name__}",
            field='additional_members'
        )
    return [FamilyMember.from_value(m) for m in value]
