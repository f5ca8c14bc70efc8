"""Overcollateralized debt engine model."""
from .collateral_token import CollateralToken
from .debt_token import DebtToken
from .engine import CollateralEngine, EngineEvent, LiquidationValues, Operation
from .health_factor import INFINITE_HEALTH_FACTOR, HealthFactorCalculator
from .position_ledger import PositionLedger
from .price_feed import MockPriceFeed
from .valuation import Valuation

__all__ = [
    "CollateralEngine",
    "CollateralToken",
    "DebtToken",
    "EngineEvent",
    "HealthFactorCalculator",
    "INFINITE_HEALTH_FACTOR",
    "LiquidationValues",
    "MockPriceFeed",
    "Operation",
    "PositionLedger",
    "Valuation",
]
