"""
Economic Model for the collateral engine.

This module wires the engine to in-memory price feeds, collateral tokens and
the debt token, and adds the tooling used to study the system under market
stress: a liquidator sweep and a random-walk price simulation.
"""

import logging

import matplotlib.pyplot as plt
import numpy as np

from .collateral_token import CollateralToken
from .debt_token import DebtToken
from .engine import CollateralEngine
from .errors import EngineError
from .fixed_point import from_units, to_units
from .price_feed import MockPriceFeed

logger = logging.getLogger(__name__)

DEFAULT_PRICES = {"WETH": 2000.0, "WBTC": 30000.0}


class CollateralEngineModel:
    """
    Complete economic model of the collateral engine.
    Combines all components and provides simulation capabilities.
    """

    def __init__(self, initial_prices=None, price_timeout=None):
        prices = dict(initial_prices or DEFAULT_PRICES)

        # Set up price feeds and collateral tokens, one per asset
        self.price_feeds = {asset: MockPriceFeed.from_usd(price) for asset, price in prices.items()}
        self.collateral_tokens = {asset: CollateralToken(asset) for asset in prices}

        # Create debt token and hand it to the engine
        self.debt_token = DebtToken()
        self.engine = CollateralEngine(
            list(self.collateral_tokens.values()),
            [self.price_feeds[asset] for asset in self.collateral_tokens],
            self.debt_token,
            price_timeout=price_timeout,
        )
        self.debt_token.transfer_ownership(self.engine.account)

        # History tracking for simulations
        self.price_history = {asset: [price] for asset, price in prices.items()}

    def open_position(self, user, asset, collateral, debt):
        """
        Funds user with collateral, deposits it and mints debt.

        Args:
            user: Address of the position owner
            asset: Collateral asset symbol
            collateral: Collateral amount in whole tokens
            debt: Debt amount in whole debt tokens
        """
        collateral_units = to_units(collateral)
        self.collateral_tokens[asset].mint(user, collateral_units)
        self.engine.deposit_and_mint(user, asset, collateral_units, to_units(debt))

    def update_price(self, asset, new_price):
        """Sets a new USD price for asset."""
        self.price_feeds[asset].update_usd_price(new_price)
        self.price_history[asset].append(new_price)

    def liquidatable_users(self):
        """
        Users whose health factor is below the minimum.

        A user whose position cannot be priced is logged and left out.
        """
        unsafe = []
        for user in self.engine.get_users():
            try:
                health_factor = self.engine.health_factor(user)
            except EngineError as e:
                logger.warning("Could not price position of %s: %s", user, e)
                continue
            if health_factor < self.engine.MIN_HEALTH_FACTOR:
                unsafe.append(user)
        return unsafe

    def run_liquidations(self, liquidator, asset):
        """
        Liquidates half of every unsafe position's debt, as far as the
        liquidator's token balance allows.

        Returns:
            List of LiquidationValues for the liquidations that went through
        """
        results = []
        for user in self.liquidatable_users():
            if user == liquidator:
                continue

            available = self.debt_token.balance_of(liquidator)
            debt = self.engine.get_debt_of_user(user)
            debt_to_cover = min(max(debt // 2, 1), available)
            if debt_to_cover == 0:
                logger.info("Liquidator %s is out of funds", liquidator)
                break

            try:
                results.append(self.engine.liquidate(liquidator, asset, user, debt_to_cover))
            except EngineError as e:
                logger.warning("Could not liquidate %s: %s", user, e)

        return results

    def total_collateral_value(self):
        """USD value of all collateral in custody, 18 decimals."""
        totals = {asset: self.engine.get_total_collateral(asset) for asset in self.engine.get_collateral_tokens()}
        return sum(self.engine.get_usd_value(asset, amount) for asset, amount in totals.items() if amount > 0)

    def system_collateralization(self):
        """Total collateral value divided by total debt."""
        total_debt = self.engine.get_total_debt()
        if total_debt == 0:
            return float("inf")
        return self.total_collateral_value() / total_debt

    def simulate_market_scenario(self, days, price_volatility=0.02, asset="WETH",
                                 liquidator=None, plot_results=True, seed=None):
        """
        Run a simulation with random price movements over the given period.

        Each hourly step moves the price of asset by a log-normal return and,
        when a liquidator is given, sweeps every unsafe position.

        Args:
            days: Number of days to simulate
            price_volatility: Standard deviation of hourly log returns
            asset: Collateral asset whose price moves
            liquidator: Account used for the liquidation sweep, None disables it
            plot_results: Whether to generate plots of the results
            seed: Seed for the random generator

        Returns:
            Dictionary with simulation results
        """
        steps = days * 24
        rng = np.random.default_rng(seed)

        # Arrays to store history
        time_points = np.arange(steps) / 24
        price_points = np.zeros(steps)
        total_debt_points = np.zeros(steps)
        collateralization_points = np.zeros(steps)
        liquidation_points = np.zeros(steps)

        price = self.price_history[asset][-1]
        log_returns = rng.normal(0, price_volatility, steps)
        liquidations = 0

        for i in range(steps):
            price *= float(np.exp(log_returns[i]))
            self.update_price(asset, price)

            if liquidator is not None:
                liquidations += len(self.run_liquidations(liquidator, asset))

            price_points[i] = price
            total_debt_points[i] = from_units(self.engine.get_total_debt())
            collateralization_points[i] = self.system_collateralization()
            liquidation_points[i] = liquidations

        if plot_results:
            fig, axs = plt.subplots(4, 1, figsize=(12, 16), sharex=True)

            axs[0].plot(time_points, price_points)
            axs[0].set_title(f"{asset} Price")
            axs[0].set_ylabel("USD")

            axs[1].plot(time_points, total_debt_points)
            axs[1].set_title("Total System Debt")
            axs[1].set_ylabel(self.debt_token.name)

            axs[2].plot(time_points, collateralization_points)
            axs[2].set_title("System Collateralization")
            axs[2].set_ylabel("Collateral / Debt")

            axs[3].plot(time_points, liquidation_points)
            axs[3].set_title("Cumulative Liquidations")
            axs[3].set_ylabel("Count")
            axs[3].set_xlabel("Days")

            plt.tight_layout()
            plt.show()

        return {
            "final_price": price,
            "min_price": float(price_points.min()) if steps else price,
            "final_system_debt": from_units(self.engine.get_total_debt()),
            "final_collateralization": self.system_collateralization(),
            "liquidations": liquidations,
            "liquidatable_positions": len(self.liquidatable_users()),
        }
