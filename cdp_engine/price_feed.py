"""
Price Feed Model.

In-memory stand-in for an aggregator style price feed. Answers are signed
integers with FEED_DECIMALS decimals, so $2000 is reported as 2000 * 10**8.
"""

import time

from .constants import FEED_DECIMALS


class MockPriceFeed:
    """Simple price feed implementation for simulations and tests."""

    def __init__(self, initial_price, decimals=FEED_DECIMALS, updated_at=None):
        self.decimals = decimals
        self.price = initial_price
        self.round_id = 1
        self.updated_at = int(time.time()) if updated_at is None else updated_at

    @classmethod
    def from_usd(cls, usd_price, decimals=FEED_DECIMALS):
        """Builds a feed from a human readable USD price."""
        return cls(round(usd_price * 10**decimals), decimals)

    def latest_price(self):
        """Returns (price, timestamp of the last update)."""
        return self.price, self.updated_at

    def latest_round_data(self):
        """
        Returns the full round tuple:
        (round_id, answer, started_at, updated_at, answered_in_round)
        """
        return self.round_id, self.price, self.updated_at, self.updated_at, self.round_id

    def update_price(self, new_price, updated_at=None):
        """Sets a new answer and starts a new round."""
        self.price = new_price
        self.round_id += 1
        self.updated_at = int(time.time()) if updated_at is None else updated_at

    def update_usd_price(self, usd_price):
        """Sets a new answer from a human readable USD price."""
        self.update_price(round(usd_price * 10**self.decimals))
