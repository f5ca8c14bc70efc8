"""
Protocol constants for the collateral engine.

All internal values are integers scaled to 18 decimals. Price feeds report
8 decimals, so feed answers are lifted by ADDITIONAL_FEED_PRECISION before they
are combined with token amounts.
"""

# Fixed point scale factors
PRECISION = 10**18  # 1.0 in internal fixed point
FEED_DECIMALS = 8  # Decimals reported by the price feeds
ADDITIONAL_FEED_PRECISION = 10**10  # 10**(18 - FEED_DECIMALS)

# Risk parameters
LIQUIDATION_THRESHOLD = 50  # 50% of collateral value counts toward solvency (200% overcollateralized)
LIQUIDATION_BONUS = 10  # 10% extra collateral for the liquidator
LIQUIDATION_PRECISION = 100
MIN_HEALTH_FACTOR = PRECISION  # 1.0

# Checked arithmetic bound (uint256)
MAX_UINT256 = 2**256 - 1

# Custody account used by the in-memory adapters
ENGINE_ACCOUNT = "collateral_engine"
