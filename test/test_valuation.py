"""
Unit tests for Valuation and the HealthFactorCalculator.
"""

import math
import unittest

from cdp_engine.constants import MIN_HEALTH_FACTOR, PRECISION
from cdp_engine.errors import HealthFactorBroken, InvalidPrice, StalePrice, UnknownAsset
from cdp_engine.health_factor import INFINITE_HEALTH_FACTOR, HealthFactorCalculator
from cdp_engine.position_ledger import PositionLedger
from cdp_engine.price_feed import MockPriceFeed
from cdp_engine.valuation import Valuation

ONE = 10**18


class TestValuation(unittest.TestCase):
    def setUp(self):
        """ETH at $2000 and BTC at $30000, 8 decimal feeds"""
        self.eth_feed = MockPriceFeed(2000 * 10**8)
        self.btc_feed = MockPriceFeed(30000 * 10**8)
        self.ledger = PositionLedger(["WETH", "WBTC"])
        self.valuation = Valuation({"WETH": self.eth_feed, "WBTC": self.btc_feed}, self.ledger)

    def test_value_of(self):
        """Test that 15 ETH is worth $30000"""
        self.assertEqual(self.valuation.value_of("WETH", 15 * ONE), 30000 * ONE)
        self.assertEqual(self.valuation.value_of("WBTC", ONE // 2), 15000 * ONE)
        self.assertEqual(self.valuation.value_of("WETH", 0), 0)

    def test_amount_for(self):
        """Test that $100 buys 0.05 ETH"""
        self.assertEqual(self.valuation.amount_for("WETH", 100 * ONE), 5 * 10**16)

    def test_amount_for_inverts_value_of(self):
        """Test that converting to value and back returns the amount, up to rounding"""
        self.eth_feed.update_price(123456789012)  # $1234.56789012
        for amount in (1, 7 * 10**15, ONE, 123 * ONE + 456):
            value = self.valuation.value_of("WETH", amount)
            recovered = self.valuation.amount_for("WETH", value)
            self.assertLessEqual(recovered, amount)
            self.assertLessEqual(amount - recovered, 1)

    def test_price_read_fresh_on_every_call(self):
        self.assertEqual(self.valuation.value_of("WETH", ONE), 2000 * ONE)
        self.eth_feed.update_price(1000 * 10**8)
        self.assertEqual(self.valuation.value_of("WETH", ONE), 1000 * ONE)

    def test_non_positive_price_rejected(self):
        """Test that zero and negative prices raise InvalidPrice in both directions"""
        for bad_price in (0, -2000 * 10**8):
            self.eth_feed.update_price(bad_price)
            with self.assertRaises(InvalidPrice):
                self.valuation.value_of("WETH", ONE)
            with self.assertRaises(InvalidPrice):
                self.valuation.amount_for("WETH", ONE)

    def test_fractional_price_rejected(self):
        """Test that an answer below one feed unit is invalid, not a division by zero"""
        self.eth_feed.update_price(0.5)
        with self.assertRaises(InvalidPrice):
            self.valuation.amount_for("WETH", ONE)
        with self.assertRaises(InvalidPrice):
            self.valuation.value_of("WETH", ONE)

    def test_unknown_asset(self):
        with self.assertRaises(UnknownAsset):
            self.valuation.value_of("DOGE", ONE)

    def test_stale_price_rejected_when_timeout_set(self):
        """Test that an old answer is rejected only when a timeout is configured"""
        feed = MockPriceFeed(2000 * 10**8, updated_at=1000)
        relaxed = Valuation({"WETH": feed}, self.ledger, clock=lambda: 100000)
        strict = Valuation({"WETH": feed}, self.ledger, price_timeout=3600, clock=lambda: 100000)

        self.assertEqual(relaxed.value_of("WETH", ONE), 2000 * ONE)
        with self.assertRaises(StalePrice):
            strict.value_of("WETH", ONE)

        feed.update_price(2000 * 10**8, updated_at=99000)
        self.assertEqual(strict.value_of("WETH", ONE), 2000 * ONE)

    def test_total_collateral_value(self):
        self.ledger.increase_collateral("alice", "WETH", 2 * ONE)
        self.ledger.increase_collateral("alice", "WBTC", ONE)
        self.assertEqual(self.valuation.total_collateral_value("alice"), 34000 * ONE)
        self.assertEqual(self.valuation.total_collateral_value("bob"), 0)


class TestHealthFactor(unittest.TestCase):
    def setUp(self):
        self.feed = MockPriceFeed(2000 * 10**8)
        self.ledger = PositionLedger(["WETH"])
        self.valuation = Valuation({"WETH": self.feed}, self.ledger)
        self.health = HealthFactorCalculator(self.ledger, self.valuation)

    def test_calculate(self):
        """Test that half of the collateral value counts toward solvency"""
        self.assertEqual(self.health.calculate(500 * ONE, 2000 * ONE), 2 * PRECISION)
        self.assertEqual(self.health.calculate(100 * ONE, 1000 * ONE), 5 * PRECISION)
        self.assertEqual(self.health.calculate(1000 * ONE, 0), 0)

    def test_no_debt_is_infinitely_healthy(self):
        self.assertTrue(math.isinf(self.health.calculate(0, 1000 * ONE)))
        self.ledger.increase_collateral("alice", "WETH", ONE)
        self.assertEqual(self.health.health_factor("alice"), INFINITE_HEALTH_FACTOR)
        self.assertEqual(self.health.health_factor("nobody"), INFINITE_HEALTH_FACTOR)

    def test_no_debt_does_not_need_a_price(self):
        self.ledger.increase_collateral("alice", "WETH", ONE)
        self.feed.update_price(0)
        self.assertTrue(self.health.is_healthy("alice"))

    def test_boundary_is_safe(self):
        """Test that a health factor of exactly 1.0 is safe and not liquidatable"""
        self.ledger.increase_collateral("alice", "WETH", ONE)
        self.ledger.increase_debt("alice", 1000 * ONE)
        self.assertEqual(self.health.health_factor("alice"), MIN_HEALTH_FACTOR)
        self.assertTrue(self.health.is_healthy("alice"))
        self.assertFalse(self.health.is_liquidatable("alice"))
        self.assertEqual(self.health.require_healthy("alice"), MIN_HEALTH_FACTOR)

    def test_require_healthy_reports_ratio(self):
        self.ledger.increase_collateral("alice", "WETH", ONE)
        self.ledger.increase_debt("alice", 1100 * ONE)
        with self.assertRaises(HealthFactorBroken) as context:
            self.health.require_healthy("alice")
        self.assertEqual(context.exception.health_factor, 909090909090909090)
        self.assertTrue(self.health.is_liquidatable("alice"))


if __name__ == "__main__":
    unittest.main()
