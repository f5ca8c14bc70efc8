"""
Valuation.

Converts collateral amounts to USD value (18 decimals) and back using the
registered price feeds. Prices are read from the feed on every call; nothing is
cached.

    value  = amount * price * ADDITIONAL_FEED_PRECISION / PRECISION
    amount = value * PRECISION / (price * ADDITIONAL_FEED_PRECISION)
"""

import time

from .constants import ADDITIONAL_FEED_PRECISION, PRECISION
from .errors import InvalidPrice, StalePrice, UnknownAsset
from .fixed_point import checked_add, checked_mul, mul_div


class Valuation:
    """
    Prices positions recorded in a PositionLedger.
    """

    def __init__(self, price_feeds, ledger, price_timeout=None, clock=time.time):
        # asset -> price feed
        self.price_feeds = dict(price_feeds)
        self.ledger = ledger

        # Maximum age of a feed answer in seconds, None disables the check
        self.price_timeout = price_timeout
        self.clock = clock

    def price_of(self, asset):
        """
        Returns the current feed price of asset.

        Raises:
            UnknownAsset: If asset has no registered feed
            InvalidPrice: If the feed answer is zero or negative
            StalePrice: If the answer is older than price_timeout
        """
        feed = self.price_feeds.get(asset)
        if feed is None:
            raise UnknownAsset(f"Asset not allowed as collateral: {asset}")

        price, updated_at = feed.latest_price()
        price = int(price)
        if price <= 0:
            raise InvalidPrice(f"Invalid price for {asset}: {price}")

        if self.price_timeout is not None and self.clock() - updated_at > self.price_timeout:
            raise StalePrice(f"Price for {asset} last updated at {updated_at}")

        return price

    def value_of(self, asset, amount):
        """USD value of amount units of asset."""
        price = self.price_of(asset)
        return mul_div(checked_mul(price, ADDITIONAL_FEED_PRECISION), amount, PRECISION)

    def amount_for(self, asset, value):
        """Units of asset worth value USD."""
        price = self.price_of(asset)
        return mul_div(value, PRECISION, checked_mul(price, ADDITIONAL_FEED_PRECISION))

    def total_collateral_value(self, user):
        """Sum of the USD value of every registered asset held for user."""
        total = 0
        for asset in self.price_feeds:
            amount = self.ledger.collateral_of(user, asset)
            if amount:
                total = checked_add(total, self.value_of(asset, amount))
        return total
