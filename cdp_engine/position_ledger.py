"""
Position Ledger.

Holds the authoritative per-user collateral and debt balances. Only the
collateral engine writes to the ledger; Valuation and the health factor
calculator read it.
"""

import copy
from dataclasses import dataclass
from typing import Dict, FrozenSet, List

from .errors import InsufficientBalance, UnknownAsset
from .fixed_point import checked_add, checked_sub


@dataclass(frozen=True)
class LedgerSnapshot:
    """Point in time copy of both balance mappings, used for rollback."""
    collateral: Dict[str, Dict[str, int]]
    debt: Dict[str, int]


class PositionLedger:
    """
    Mapping of user -> asset -> collateral units and user -> debt units.
    """

    def __init__(self, assets):
        # Registered asset identifiers; fixed for the ledger's lifetime
        self.assets: FrozenSet[str] = frozenset(assets)

        self._collateral: Dict[str, Dict[str, int]] = {}
        self._debt: Dict[str, int] = {}

    # --- Reads ---

    def collateral_of(self, user, asset):
        """Returns the units of asset held in custody for user."""
        self._require_asset(asset)
        return self._collateral.get(user, {}).get(asset, 0)

    def debt_of(self, user):
        """Returns the outstanding debt minted by user."""
        return self._debt.get(user, 0)

    def collateral_assets_of(self, user) -> List[str]:
        """Assets with a nonzero balance for user."""
        return [asset for asset, amount in self._collateral.get(user, {}).items() if amount > 0]

    def users(self) -> List[str]:
        """Every user with a recorded collateral or debt balance."""
        return sorted(set(self._collateral) | set(self._debt))

    def total_debt(self):
        return sum(self._debt.values())

    def total_collateral(self, asset):
        self._require_asset(asset)
        return sum(balances.get(asset, 0) for balances in self._collateral.values())

    # --- Writes ---

    def increase_collateral(self, user, asset, amount):
        self._require_asset(asset)
        balances = self._collateral.setdefault(user, {})
        balances[asset] = checked_add(balances.get(asset, 0), amount)
        return balances[asset]

    def decrease_collateral(self, user, asset, amount):
        """
        Removes collateral from user's balance.

        Raises:
            InsufficientBalance: If amount exceeds the recorded balance
        """
        current = self.collateral_of(user, asset)
        if amount > current:
            raise InsufficientBalance(
                f"Cannot remove {amount} {asset} from {user}: balance is {current}"
            )
        self._collateral[user][asset] = checked_sub(current, amount)
        return self._collateral[user][asset]

    def increase_debt(self, user, amount):
        self._debt[user] = checked_add(self.debt_of(user), amount)
        return self._debt[user]

    def decrease_debt(self, user, amount):
        """
        Removes debt from user's balance.

        Raises:
            InsufficientBalance: If amount exceeds the recorded debt
        """
        current = self.debt_of(user)
        if amount > current:
            raise InsufficientBalance(f"Cannot burn {amount} debt of {user}: balance is {current}")
        self._debt[user] = checked_sub(current, amount)
        return self._debt[user]

    # --- Rollback ---

    def snapshot(self):
        """Returns a deep copy of the balances."""
        return LedgerSnapshot(copy.deepcopy(self._collateral), dict(self._debt))

    def restore(self, snapshot):
        """Replaces the balances with a previously taken snapshot."""
        self._collateral = copy.deepcopy(snapshot.collateral)
        self._debt = dict(snapshot.debt)

    def _require_asset(self, asset):
        if asset not in self.assets:
            raise UnknownAsset(f"Asset not allowed as collateral: {asset}")
