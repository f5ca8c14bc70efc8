"""Errors raised by the collateral engine"""


class EngineError(Exception):
    """Base error class for engine errors"""
    pass


class ZeroAmount(EngineError):
    """Amount argument is zero or negative"""
    pass


class UnknownAsset(EngineError):
    """Asset is not in the collateral registry"""
    pass


class LengthMismatch(EngineError):
    """Collateral token and price feed lists differ in size"""
    pass


class TransferFailed(EngineError):
    """Collateral or debt token transfer failed"""
    pass


class MintFailed(EngineError):
    """Debt token mint failed"""
    pass


class HealthFactorBroken(EngineError):
    """Position would end below the minimum health factor"""

    def __init__(self, health_factor):
        self.health_factor = health_factor
        super().__init__(f"Health factor broken: {health_factor}")


class HealthFactorOk(EngineError):
    """Liquidation attempted on a position that is not liquidatable"""
    pass


class HealthFactorNotImproved(EngineError):
    """Liquidation did not improve the target's health factor"""
    pass


class ReentrantCall(EngineError):
    """Engine operation entered while another one is in progress"""
    pass


class InsufficientBalance(EngineError):
    """Redeem or burn exceeds the recorded balance"""
    pass


class InvalidPrice(EngineError):
    """Price feed returned a non-positive price"""
    pass


class StalePrice(EngineError):
    """Price feed answer is older than the configured timeout"""
    pass


class ArithmeticOverflow(EngineError):
    """Result exceeds the uint256 range"""
    pass


class ArithmeticUnderflow(EngineError):
    """Result would be negative"""
    pass


class DivisionByZero(EngineError):
    """Division by zero in fixed point math"""
    pass
