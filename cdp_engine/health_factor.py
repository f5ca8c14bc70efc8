"""Health factor calculation.

health factor = (collateral value * LIQUIDATION_THRESHOLD / LIQUIDATION_PRECISION)
                * PRECISION / total debt

A position is safe when the ratio is >= MIN_HEALTH_FACTOR and liquidatable
when it is strictly below.
"""

from .constants import (
    LIQUIDATION_PRECISION,
    LIQUIDATION_THRESHOLD,
    MIN_HEALTH_FACTOR,
    PRECISION,
)
from .errors import HealthFactorBroken
from .fixed_point import mul_div

# Health factor of a position without debt
INFINITE_HEALTH_FACTOR = float("inf")


class HealthFactorCalculator:

    def __init__(self, ledger, valuation, liquidation_threshold=LIQUIDATION_THRESHOLD,
                 min_health_factor=MIN_HEALTH_FACTOR):
        self.ledger = ledger
        self.valuation = valuation
        self.liquidation_threshold = liquidation_threshold
        self.min_health_factor = min_health_factor

    def calculate(self, total_debt, collateral_value):
        """Health factor for a given debt and collateral value."""
        if total_debt == 0:
            return INFINITE_HEALTH_FACTOR
        adjusted = mul_div(collateral_value, self.liquidation_threshold, LIQUIDATION_PRECISION)
        return mul_div(adjusted, PRECISION, total_debt)

    def health_factor(self, user):
        total_debt = self.ledger.debt_of(user)
        if total_debt == 0:
            return INFINITE_HEALTH_FACTOR
        return self.calculate(total_debt, self.valuation.total_collateral_value(user))

    def is_healthy(self, user):
        return self.health_factor(user) >= self.min_health_factor

    def is_liquidatable(self, user):
        return self.health_factor(user) < self.min_health_factor

    def require_healthy(self, user):
        """Raises HealthFactorBroken if user is below the minimum."""
        health_factor = self.health_factor(user)
        if health_factor < self.min_health_factor:
            raise HealthFactorBroken(health_factor)
        return health_factor
