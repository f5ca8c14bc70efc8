"""
Debt Token Model.

This module simulates the pegged debt token minted against collateral.
Minting and burning are reserved to the owner, which is the collateral engine
once ownership has been handed over at deployment.
"""


class DebtToken:
    """
    Simulates the pegged stablecoin operated by the collateral engine.
    """

    def __init__(self, name="DSC"):
        self.name = name

        # Total token supply
        self.total_supply = 0

        # Mapping of addresses to token balances
        self.balances = {}

        # Account allowed to mint and burn
        self.owner = None

    def transfer_ownership(self, new_owner):
        """Hands mint and burn authority to new_owner."""
        if not new_owner:
            raise ValueError("Owner cannot be empty")
        self.owner = new_owner

    def balance_of(self, account):
        """Returns the token balance of the given account."""
        return self.balances.get(account, 0)

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
            return False

        self.balances[sender] = sender_balance - amount
        self.balances[recipient] = self.balances.get(recipient, 0) + amount
        return True

    def pull(self, sender, amount):
        """Moves tokens from sender to the owner ahead of a burn."""
        self._require_owner()
        return self.transfer(sender, self.owner, amount)

    def mint(self, recipient, amount):
        """
        Mints new tokens to the recipient account.

        Returns:
            True if successful
        """
        self._require_owner()
        if amount <= 0:
            raise ValueError("Amount must be greater than zero")

        self.balances[recipient] = self.balances.get(recipient, 0) + amount
        self.total_supply += amount
        return True

    def burn(self, amount):
        """
        Burns tokens held by the owner.

        Raises:
            ValueError: If the owner does not hold the amount
        """
        self._require_owner()
        if amount <= 0:
            raise ValueError("Amount must be greater than zero")

        owner_balance = self.balances.get(self.owner, 0)
        if owner_balance < amount:
            raise ValueError("Burn amount exceeds balance")

        self.balances[self.owner] = owner_balance - amount
        self.total_supply -= amount

    def _require_owner(self):
        if not self.owner:
            raise ValueError("Owner not set")
