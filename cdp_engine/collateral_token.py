"""
Collateral Token Model.

This module simulates an approved collateral asset (e.g. WETH, WBTC). It keeps
per-account balances and moves units in and out of the engine's custody
account. Failed moves return False instead of raising, so the engine decides
how a failed transfer surfaces.
"""

import logging

from .constants import ENGINE_ACCOUNT

logger = logging.getLogger(__name__)


class CollateralToken:
    """
    Simulates an ERC20 style collateral asset with a custody account.
    """

    def __init__(self, symbol, custodian=ENGINE_ACCOUNT):
        self.symbol = symbol

        # Account holding deposited collateral on behalf of depositors
        self.custodian = custodian

        # Mapping of addresses to token balances
        self.balances = {}

        self.total_supply = 0

    def balance_of(self, account):
        """Returns the token balance of the given account."""
        return self.balances.get(account, 0)

    def custody_balance(self):
        """Returns the units held by the custodian."""
        return self.balance_of(self.custodian)

    def mint(self, recipient, amount):
        """
        Faucet used by simulations and tests to fund accounts.

        Args:
            recipient: Address receiving the tokens
            amount: Amount of tokens to create
        """
        if amount <= 0:
            raise ValueError("Amount must be greater than zero")

        self.balances[recipient] = self.balances.get(recipient, 0) + amount
        self.total_supply += amount

    def transfer(self, sender, recipient, amount):
        """
        Transfers tokens from sender to recipient.

        Returns:
            True if successful, False if the sender cannot cover the amount
        """
        if amount <= 0:
            raise ValueError("Amount must be greater than zero")

        sender_balance = self.balances.get(sender, 0)
        if sender_balance < amount:
            logger.debug("%s transfer of %s from %s failed: balance %s", self.symbol, amount, sender, sender_balance)
            return False

        self.balances[sender] = sender_balance - amount
        self.balances[recipient] = self.balances.get(recipient, 0) + amount
        return True

    def pull(self, sender, amount):
        """Moves collateral from sender into custody."""
        return self.transfer(sender, self.custodian, amount)

    def push(self, recipient, amount):
        """Moves collateral out of custody to recipient."""
        return self.transfer(self.custodian, recipient, amount)
