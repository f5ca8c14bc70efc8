"""
Unit tests for the PositionLedger.
"""

import unittest

from cdp_engine.errors import InsufficientBalance, UnknownAsset
from cdp_engine.position_ledger import PositionLedger


class TestPositionLedger(unittest.TestCase):
    def setUp(self):
        """Initialize a ledger with two registered assets"""
        self.ledger = PositionLedger(["WETH", "WBTC"])

    def test_balances_start_at_zero(self):
        self.assertEqual(self.ledger.collateral_of("alice", "WETH"), 0)
        self.assertEqual(self.ledger.debt_of("alice"), 0)
        self.assertEqual(self.ledger.users(), [])

    def test_collateral_increase_and_decrease(self):
        self.ledger.increase_collateral("alice", "WETH", 100)
        self.ledger.increase_collateral("alice", "WETH", 50)
        self.assertEqual(self.ledger.decrease_collateral("alice", "WETH", 120), 30)
        self.assertEqual(self.ledger.collateral_of("alice", "WETH"), 30)
        self.assertEqual(self.ledger.collateral_of("alice", "WBTC"), 0)

    def test_collateral_underflow_rejects(self):
        """Test that removing more than deposited fails without touching the balance"""
        self.ledger.increase_collateral("alice", "WETH", 100)
        with self.assertRaises(InsufficientBalance):
            self.ledger.decrease_collateral("alice", "WETH", 101)
        self.assertEqual(self.ledger.collateral_of("alice", "WETH"), 100)

        with self.assertRaises(InsufficientBalance):
            self.ledger.decrease_collateral("bob", "WETH", 1)

    def test_debt_underflow_rejects(self):
        self.ledger.increase_debt("alice", 500)
        with self.assertRaises(InsufficientBalance):
            self.ledger.decrease_debt("alice", 501)
        self.assertEqual(self.ledger.decrease_debt("alice", 500), 0)

    def test_unknown_asset_rejected(self):
        """Test that only registered assets can be recorded"""
        with self.assertRaises(UnknownAsset):
            self.ledger.increase_collateral("alice", "DOGE", 1)
        with self.assertRaises(UnknownAsset):
            self.ledger.collateral_of("alice", "DOGE")
        self.assertEqual(self.ledger.users(), [])

    def test_totals_and_users(self):
        self.ledger.increase_collateral("alice", "WETH", 100)
        self.ledger.increase_collateral("bob", "WETH", 25)
        self.ledger.increase_collateral("bob", "WBTC", 7)
        self.ledger.increase_debt("carol", 10)
        self.ledger.increase_debt("bob", 5)

        self.assertEqual(self.ledger.total_collateral("WETH"), 125)
        self.assertEqual(self.ledger.total_collateral("WBTC"), 7)
        self.assertEqual(self.ledger.total_debt(), 15)
        self.assertEqual(self.ledger.users(), ["alice", "bob", "carol"])
        self.assertEqual(sorted(self.ledger.collateral_assets_of("bob")), ["WBTC", "WETH"])

    def test_snapshot_restore(self):
        """Test that restore brings back the exact balances of the snapshot"""
        self.ledger.increase_collateral("alice", "WETH", 100)
        self.ledger.increase_debt("alice", 40)
        snapshot = self.ledger.snapshot()

        self.ledger.increase_collateral("alice", "WETH", 1)
        self.ledger.increase_collateral("bob", "WBTC", 3)
        self.ledger.decrease_debt("alice", 40)
        self.ledger.restore(snapshot)

        self.assertEqual(self.ledger.snapshot(), snapshot)
        self.assertEqual(self.ledger.collateral_of("alice", "WETH"), 100)
        self.assertEqual(self.ledger.collateral_of("bob", "WBTC"), 0)
        self.assertEqual(self.ledger.debt_of("alice"), 40)

    def test_snapshot_is_isolated_from_later_writes(self):
        self.ledger.increase_collateral("alice", "WETH", 100)
        snapshot = self.ledger.snapshot()
        self.ledger.increase_collateral("alice", "WETH", 100)
        self.assertEqual(snapshot.collateral["alice"]["WETH"], 100)


if __name__ == "__main__":
    unittest.main()
