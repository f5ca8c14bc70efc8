"""Adapter protocols for the engine's external collaborators."""
from typing import Protocol, Tuple, runtime_checkable


@runtime_checkable
class PriceOracleAdapter(Protocol):
    """Read-only price query for one collateral asset."""

    def latest_price(self) -> Tuple[int, int]: ...


@runtime_checkable
class AssetTransferAdapter(Protocol):
    """Moves collateral units between accounts and the engine's custody."""

    symbol: str

    def pull(self, sender: str, amount: int) -> bool: ...

    def push(self, recipient: str, amount: int) -> bool: ...


@runtime_checkable
class DebtTokenAdapter(Protocol):
    """Pegged debt token operated under the engine's exclusive authority."""

    def mint(self, recipient: str, amount: int) -> bool: ...

    def burn(self, amount: int) -> None: ...

    def pull(self, sender: str, amount: int) -> bool: ...

    def transfer(self, sender: str, recipient: str, amount: int) -> bool: ...
