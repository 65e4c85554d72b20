from dataclasses import dataclass
from decimal import Decimal

from ..exceptions import ConfigurationError, ValidationError
from .material import MaterialType

ZERO = Decimal(0)


@dataclass(frozen=True)
class FineStrategy:
    """
    Fine policy for one material type: a daily penalty rate and the number
    of days an item may be kept before it becomes overdue.

    Rates are held as Decimal so that repeated additions in reports never
    drift. Ints and numeric strings are accepted and converted on creation.
    """
    daily_rate: Decimal
    borrow_period_days: int

    def __post_init__(self):
        if self.daily_rate is None:
            raise ValidationError("Error: daily rate is required")
        rate = self.daily_rate
        if not isinstance(rate, Decimal):
            if isinstance(rate, bool) or not isinstance(rate, (int, float, str)):
                raise ValidationError(f"Error: invalid daily rate {rate!r}")
            try:
                rate = Decimal(str(rate))
            except ArithmeticError:
                raise ValidationError(f"Error: invalid daily rate {rate!r}") from None
        if not rate.is_finite() or rate < 0:
            raise ValidationError("Error: daily rate must be non-negative")
        if isinstance(self.borrow_period_days, bool) or not isinstance(self.borrow_period_days, int):
            raise ValidationError("Error: borrow period must be a whole number of days")
        if self.borrow_period_days <= 0:
            raise ValidationError("Error: borrow period must be positive")
        object.__setattr__(self, "daily_rate", rate)

    def calculate_fine(self, overdue_days: int) -> Decimal:
        """Fine for the given number of overdue days; zero when not overdue."""
        if overdue_days <= 0:
            return ZERO
        return self.daily_rate * overdue_days


# Standard policy table: rate per overdue day, borrow period in days.
FINE_POLICIES = {
    MaterialType.BOOK: FineStrategy(Decimal("10"), 28),
    MaterialType.CD: FineStrategy(Decimal("20"), 7),
    MaterialType.JOURNAL: FineStrategy(Decimal("15"), 21),
}


def strategy_for(material_type) -> FineStrategy:
    """Return the fine policy for a material type (enum member or its name)."""
    mtype = MaterialType.parse(material_type)
    policy = FINE_POLICIES.get(mtype)
    if policy is None:  # pragma: no cover
        raise ConfigurationError(f"Error: no fine policy for {mtype}")
    return policy
