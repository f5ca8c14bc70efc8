"""
Collateral Engine.

This module holds the CollateralEngine, the only component allowed to change
user positions. It is responsible for:
1. Accepting collateral deposits into custody and releasing redemptions
2. Minting and burning the pegged debt token against recorded collateral
3. Enforcing the minimum health factor after every mutation
4. Liquidating unsafe positions in exchange for a collateral bonus

Every mutating operation runs as one transaction. Ledger effects and health
checks are applied first, transfers and mints to the external adapters run
last. If anything fails, the completed adapter calls are compensated in reverse
order and the ledger is restored from the snapshot taken when the operation
started, so callers observe either the whole operation or nothing.
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Union

from .constants import (
    ADDITIONAL_FEED_PRECISION,
    ENGINE_ACCOUNT,
    LIQUIDATION_BONUS,
    LIQUIDATION_PRECISION,
    LIQUIDATION_THRESHOLD,
    MIN_HEALTH_FACTOR,
    PRECISION,
)
from .errors import (
    EngineError,
    HealthFactorNotImproved,
    HealthFactorOk,
    InsufficientBalance,
    LengthMismatch,
    MintFailed,
    ReentrantCall,
    TransferFailed,
    UnknownAsset,
    ZeroAmount,
)
from .fixed_point import checked_add, mul_div
from .health_factor import HealthFactorCalculator
from .interfaces import AssetTransferAdapter, DebtTokenAdapter, PriceOracleAdapter
from .position_ledger import PositionLedger
from .valuation import Valuation

logger = logging.getLogger(__name__)


class Operation(Enum):
    """
    Operations recorded in the engine's event log.
    """
    DEPOSIT_COLLATERAL = 0
    REDEEM_COLLATERAL = 1
    MINT_DEBT = 2
    BURN_DEBT = 3
    LIQUIDATE = 4


@dataclass
class EngineEvent:
    """
    One committed ledger change.

    For REDEEM_COLLATERAL, user is the position the collateral left and
    counterparty the account that received it. For BURN_DEBT, counterparty is
    the account whose tokens paid the debt. For LIQUIDATE, user is the target
    and counterparty the liquidator.
    """
    operation: Operation
    user: str
    amount: int
    asset: Optional[str] = None
    counterparty: Optional[str] = None


@dataclass
class LiquidationValues:
    """
    Values calculated during the liquidation of a position.
    """
    debt_to_cover: int = 0             # Debt repaid on behalf of the target
    collateral_seized: int = 0         # Collateral worth debt_to_cover
    bonus_collateral: int = 0          # Incentive on top of the seized amount
    total_collateral_redeemed: int = 0  # Sent to the liquidator
    starting_health_factor: Union[int, float] = 0  # 18-decimal ratio, inf without debt
    ending_health_factor: Union[int, float] = 0


@dataclass
class _Interaction:
    action: Callable[[], Optional[bool]]
    compensation: Callable[[], Optional[bool]]
    error: type
    description: str


@dataclass
class _Transaction:
    """Pending effects of the operation in progress."""
    snapshot: object
    interactions: List[_Interaction] = field(default_factory=list)
    events: List[EngineEvent] = field(default_factory=list)

    def interact(self, action, compensation, error, description):
        """Queues an adapter call to run once every check has passed."""
        self.interactions.append(_Interaction(action, compensation, error, description))


class CollateralEngine:
    """
    Overcollateralized debt engine.

    Args:
        collateral_tokens: Collateral asset handles; each symbol is the asset identifier
        price_feeds: Price feed for each collateral token, in the same order
        debt_token: Debt token handle; this engine must own it
        account: Custody account name the adapters use for the engine
        price_timeout: Maximum feed answer age in seconds, None disables the check

    Raises:
        LengthMismatch: If the token and feed lists differ in size
    """

    def __init__(self, collateral_tokens: Sequence[AssetTransferAdapter],
                 price_feeds: Sequence[PriceOracleAdapter], debt_token: DebtTokenAdapter,
                 account: str = ENGINE_ACCOUNT, price_timeout: Optional[int] = None):
        if len(collateral_tokens) != len(price_feeds):
            raise LengthMismatch(
                f"{len(collateral_tokens)} collateral tokens but {len(price_feeds)} price feeds"
            )

        # Connected contracts
        self.debt_token = debt_token
        self.account = account

        # Collateral registry, fixed at construction
        self._collateral_assets = tuple(token.symbol for token in collateral_tokens)
        self._collateral_tokens = {token.symbol: token for token in collateral_tokens}
        self._price_feeds = dict(zip(self._collateral_assets, price_feeds))

        # Risk parameters
        self.PRECISION = PRECISION
        self.ADDITIONAL_FEED_PRECISION = ADDITIONAL_FEED_PRECISION
        self.LIQUIDATION_THRESHOLD = LIQUIDATION_THRESHOLD
        self.LIQUIDATION_BONUS = LIQUIDATION_BONUS
        self.LIQUIDATION_PRECISION = LIQUIDATION_PRECISION
        self.MIN_HEALTH_FACTOR = MIN_HEALTH_FACTOR

        # State
        self.ledger = PositionLedger(self._collateral_assets)
        self.valuation = Valuation(self._price_feeds, self.ledger, price_timeout=price_timeout)
        self.health = HealthFactorCalculator(
            self.ledger, self.valuation, self.LIQUIDATION_THRESHOLD, self.MIN_HEALTH_FACTOR
        )

        # Committed events, oldest first
        self.events: List[EngineEvent] = []

        # Serializes operations; the owner thread is tracked to reject nested calls
        self._lock = threading.Lock()
        self._lock_owner = None

    # --- Collateral ---

    def deposit_collateral(self, user, asset, amount):
        """
        Records amount of asset for user and pulls it into custody.

        Raises:
            ZeroAmount, UnknownAsset, TransferFailed
        """
        with self._transaction("deposit_collateral", user) as txn:
            self._deposit_collateral(txn, user, asset, amount)

    def redeem_collateral(self, user, asset, amount):
        """
        Releases amount of asset from user's position back to user.

        Raises:
            ZeroAmount, UnknownAsset, InsufficientBalance, HealthFactorBroken, TransferFailed
        """
        with self._transaction("redeem_collateral", user) as txn:
            self._redeem_collateral(txn, asset, amount, user, user)
            self.health.require_healthy(user)

    # --- Debt ---

    def mint_debt(self, user, amount):
        """
        Mints amount of debt token to user against the recorded collateral.

        Raises:
            ZeroAmount, HealthFactorBroken, MintFailed
        """
        with self._transaction("mint_debt", user) as txn:
            self._mint_debt(txn, user, amount)

    def burn_debt(self, user, amount):
        """
        Repays amount of user's debt with user's own tokens.

        Raises:
            ZeroAmount, InsufficientBalance, HealthFactorBroken, TransferFailed
        """
        with self._transaction("burn_debt", user) as txn:
            self._burn_debt(txn, amount, user, user)
            self.health.require_healthy(user)

    # --- Composites ---

    def deposit_and_mint(self, user, asset, collateral_amount, debt_amount):
        """Deposits collateral and mints debt in one operation."""
        with self._transaction("deposit_and_mint", user) as txn:
            self._deposit_collateral(txn, user, asset, collateral_amount)
            self._mint_debt(txn, user, debt_amount)

    def redeem_for_burn(self, user, asset, collateral_amount, debt_amount):
        """Burns debt, then redeems collateral, in one operation."""
        with self._transaction("redeem_for_burn", user) as txn:
            self._burn_debt(txn, debt_amount, user, user)
            self._redeem_collateral(txn, asset, collateral_amount, user, user)
            self.health.require_healthy(user)

    # --- Liquidation ---

    def liquidate(self, liquidator, asset, user, debt_to_cover):
        """
        Repays debt_to_cover of an unsafe position and pays the liquidator in
        collateral plus a bonus.

        The liquidation process follows these steps:
        1. Convert debt_to_cover into the equivalent amount of asset
        2. Add the liquidation bonus on top of that amount
        3. Move the seized collateral from the target to the liquidator
        4. Burn the target's debt using the liquidator's tokens
        5. Require the target's health factor to have strictly improved
        6. Require the liquidator to still be solvent

        Partial liquidation is allowed. If the system is at or below 100%
        collateralization there is no bonus left to pay; the engine has no
        mechanism to sweep that bad debt.

        Args:
            liquidator: Account paying the debt and receiving the collateral
            asset: Collateral asset to seize
            user: Position being liquidated
            debt_to_cover: Amount of debt to repay

        Returns:
            LiquidationValues describing the liquidation

        Raises:
            HealthFactorOk: If user's health factor is at or above the minimum
            HealthFactorNotImproved: If the liquidation would not improve user
            InsufficientBalance: If user lacks the debt or the collateral to seize
        """
        with self._transaction("liquidate", user) as txn:
            self._require_positive(debt_to_cover)
            self._require_registered(asset)

            starting_health_factor = self.health.health_factor(user)
            if starting_health_factor >= self.MIN_HEALTH_FACTOR:
                raise HealthFactorOk(f"Health factor of {user} is ok: {starting_health_factor}")

            if debt_to_cover > self.ledger.debt_of(user):
                raise InsufficientBalance(
                    f"Cannot cover {debt_to_cover} debt of {user}: balance is {self.ledger.debt_of(user)}"
                )

            collateral_seized = self.valuation.amount_for(asset, debt_to_cover)
            bonus_collateral = mul_div(collateral_seized, self.LIQUIDATION_BONUS, self.LIQUIDATION_PRECISION)
            total_collateral_redeemed = checked_add(collateral_seized, bonus_collateral)

            self._redeem_collateral(txn, asset, total_collateral_redeemed, user, liquidator)
            self.health.require_healthy(liquidator)

            self._burn_debt(txn, debt_to_cover, user, liquidator)

            ending_health_factor = self.health.health_factor(user)
            if ending_health_factor <= starting_health_factor:
                raise HealthFactorNotImproved(
                    f"Health factor of {user} went from {starting_health_factor} to {ending_health_factor}"
                )
            self.health.require_healthy(liquidator)

            txn.events.append(EngineEvent(Operation.LIQUIDATE, user, debt_to_cover, asset, liquidator))

        logger.info(
            "Liquidated %s: %s debt covered by %s for %s %s (health factor %s -> %s)",
            user, debt_to_cover, liquidator, total_collateral_redeemed, asset,
            starting_health_factor, ending_health_factor,
        )
        return LiquidationValues(
            debt_to_cover=debt_to_cover,
            collateral_seized=collateral_seized,
            bonus_collateral=bonus_collateral,
            total_collateral_redeemed=total_collateral_redeemed,
            starting_health_factor=starting_health_factor,
            ending_health_factor=ending_health_factor,
        )

    # --- Views ---

    def health_factor(self, user):
        with self._reading():
            return self.health.health_factor(user)

    def calculate_health_factor(self, total_debt, collateral_value):
        return self.health.calculate(total_debt, collateral_value)

    def get_account_information(self, user):
        """Returns (total debt minted, collateral value in USD)."""
        with self._reading():
            return self.ledger.debt_of(user), self.valuation.total_collateral_value(user)

    def get_account_collateral_value(self, user):
        with self._reading():
            return self.valuation.total_collateral_value(user)

    def get_usd_value(self, asset, amount):
        return self.valuation.value_of(asset, amount)

    def get_token_amount_from_usd(self, asset, usd_amount):
        return self.valuation.amount_for(asset, usd_amount)

    def get_collateral_balance_of_user(self, user, asset):
        with self._reading():
            return self.ledger.collateral_of(user, asset)

    def get_debt_of_user(self, user):
        with self._reading():
            return self.ledger.debt_of(user)

    def get_users(self):
        """Users with any recorded collateral or debt, sorted."""
        with self._reading():
            return self.ledger.users()

    def get_total_debt(self):
        with self._reading():
            return self.ledger.total_debt()

    def get_total_collateral(self, asset):
        with self._reading():
            return self.ledger.total_collateral(asset)

    def get_collateral_tokens(self):
        return self._collateral_assets

    def get_collateral_token(self, asset):
        self._require_registered(asset)
        return self._collateral_tokens[asset]

    def get_collateral_token_price_feed(self, asset):
        self._require_registered(asset)
        return self._price_feeds[asset]

    def get_debt_token(self):
        return self.debt_token

    def get_precision(self):
        return self.PRECISION

    def get_additional_feed_precision(self):
        return self.ADDITIONAL_FEED_PRECISION

    def get_liquidation_threshold(self):
        return self.LIQUIDATION_THRESHOLD

    def get_liquidation_bonus(self):
        return self.LIQUIDATION_BONUS

    def get_liquidation_precision(self):
        return self.LIQUIDATION_PRECISION

    def get_min_health_factor(self):
        return self.MIN_HEALTH_FACTOR

    # --- Internal steps ---

    def _deposit_collateral(self, txn, user, asset, amount):
        self._require_positive(amount)
        self._require_registered(asset)

        self.ledger.increase_collateral(user, asset, amount)
        txn.events.append(EngineEvent(Operation.DEPOSIT_COLLATERAL, user, amount, asset))

        token = self._collateral_tokens[asset]
        txn.interact(
            lambda: token.pull(user, amount),
            lambda: token.push(user, amount),
            TransferFailed,
            f"pull {amount} {asset} from {user}",
        )

    def _redeem_collateral(self, txn, asset, amount, from_user, to_user):
        self._require_positive(amount)
        self._require_registered(asset)

        self.ledger.decrease_collateral(from_user, asset, amount)
        txn.events.append(EngineEvent(Operation.REDEEM_COLLATERAL, from_user, amount, asset, to_user))

        token = self._collateral_tokens[asset]
        txn.interact(
            lambda: token.push(to_user, amount),
            lambda: token.pull(to_user, amount),
            TransferFailed,
            f"push {amount} {asset} to {to_user}",
        )

    def _mint_debt(self, txn, user, amount):
        self._require_positive(amount)

        self.ledger.increase_debt(user, amount)
        self.health.require_healthy(user)
        txn.events.append(EngineEvent(Operation.MINT_DEBT, user, amount))

        def revert_mint():
            if self.debt_token.pull(user, amount):
                self.debt_token.burn(amount)
                return True
            return False

        txn.interact(
            lambda: self.debt_token.mint(user, amount),
            revert_mint,
            MintFailed,
            f"mint {amount} to {user}",
        )

    def _burn_debt(self, txn, amount, on_behalf_of, debt_from):
        """Reduces on_behalf_of's debt using tokens held by debt_from."""
        self._require_positive(amount)

        self.ledger.decrease_debt(on_behalf_of, amount)
        txn.events.append(EngineEvent(Operation.BURN_DEBT, on_behalf_of, amount, counterparty=debt_from))

        txn.interact(
            lambda: self.debt_token.pull(debt_from, amount),
            lambda: self.debt_token.transfer(self.account, debt_from, amount),
            TransferFailed,
            f"pull {amount} debt token from {debt_from}",
        )

        def burn():
            self.debt_token.burn(amount)
            return True

        txn.interact(
            burn,
            lambda: self.debt_token.mint(self.account, amount),
            TransferFailed,
            f"burn {amount} debt token",
        )

    @staticmethod
    def _require_positive(amount):
        if amount <= 0:
            raise ZeroAmount(f"Amount must be more than zero: {amount}")

    def _require_registered(self, asset):
        if asset not in self._price_feeds:
            raise UnknownAsset(f"Asset not allowed as collateral: {asset}")

    # --- Transactions ---

    @contextmanager
    def _transaction(self, name, user):
        """
        Runs one mutating operation under the engine lock.

        Yields a _Transaction collecting adapter calls and events. They are
        executed and published only when the body completes without error.
        """
        if self._lock_owner == threading.get_ident():
            raise ReentrantCall(f"{name} called while another operation is in progress")

        with self._lock:
            self._lock_owner = threading.get_ident()
            txn = _Transaction(self.ledger.snapshot())
            try:
                yield txn
                self._run_interactions(txn)
            except Exception as e:
                self.ledger.restore(txn.snapshot)
                logger.warning("%s for %s rolled back: %s: %s", name, user, type(e).__name__, e)
                raise
            else:
                self.events.extend(txn.events)
                logger.info("%s for %s committed", name, user)
            finally:
                self._lock_owner = None

    @contextmanager
    def _reading(self):
        """
        Holds the engine lock for a read so other threads only see committed
        state. Reads made from inside an operation on the same thread go
        straight to the ledger.
        """
        if self._lock_owner == threading.get_ident():
            yield
            return
        with self._lock:
            yield

    def _run_interactions(self, txn):
        """Executes queued adapter calls, compensating completed ones on failure."""
        completed = []
        for interaction in txn.interactions:
            try:
                result = interaction.action()
            except EngineError:
                self._compensate(completed)
                raise
            except Exception as e:
                self._compensate(completed)
                raise interaction.error(f"{interaction.description} failed: {e}") from e

            if result is False:
                self._compensate(completed)
                raise interaction.error(f"{interaction.description} failed")

            completed.append(interaction)

    @staticmethod
    def _compensate(completed):
        for interaction in reversed(completed):
            try:
                result = interaction.compensation()
            except Exception:
                logger.exception("Could not undo %s", interaction.description)
                continue
            if result is False:
                logger.error("Could not undo %s", interaction.description)
