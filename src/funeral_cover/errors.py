"""
funeral_cover/errors.py - Error Taxonomy and Tagged Outcomes

Three kinds of failure can stop a premium calculation:

- ConfigurationError: the rate card itself is malformed (build time)
- RateNotFoundError: no rate for the resolved option / age (lookup time)
- ValidationError: the quote request is invalid (input correction)

All messages are written as end-user text and may be shown verbatim.

Callers that prefer not to catch exceptions use PremiumCalculator.calculate(),
which returns Ok(result) or Err(kind, message).

Author: Funeral Cover Pricing Project
License: MIT
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union


class ErrorKind(Enum):
    """Failure categories surfaced to the calling layer."""
    CONFIGURATION = "configuration"
    RATE_NOT_FOUND = "rate_not_found"
    VALIDATION = "validation"


class FuneralCoverError(ValueError):
    """Base class for all pricing failures."""
    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(FuneralCoverError):
    """Rate card rows could not be turned into a rate table."""
    kind = ErrorKind.CONFIGURATION


class RateNotFoundError(FuneralCoverError):
    """No rate band exists for the requested option and age."""
    kind = ErrorKind.RATE_NOT_FOUND

    def __init__(self, message: str, benefit_option: Optional[str] = None,
                 age: Optional[int] = None):
        super().__init__(message)
        self.benefit_option = benefit_option
        self.age = age


class ValidationError(FuneralCoverError):
    """The quote request breaks a business rule."""
    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


# =============================================================================
# TAGGED RESULT
# =============================================================================

@dataclass(frozen=True)
class Ok:
    """Successful calculation."""
    value: Any

    @property
    def is_ok(self) -> bool:
        return True

    def unwrap(self) -> Any:
        return self.value


@dataclass(frozen=True)
class Err:
    """Failed calculation: the kind, user-facing message and original error."""
    kind: ErrorKind
    message: str
    error: FuneralCoverError

    @property
    def is_ok(self) -> bool:
        return False

    @property
    def field(self) -> Optional[str]:
        return getattr(self.error, 'field', None)

    def unwrap(self) -> Any:
        raise self.error

    @classmethod
    def from_exception(cls, exc: FuneralCoverError) -> "Err":
        return cls(kind=exc.kind, message=exc.message, error=exc)


Outcome = Union[Ok, Err]
