"""
Simple simulation for the collateral engine.

This script walks one position through a price crash and a partial
liquidation.
"""

from cdp_engine.economic_model import CollateralEngineModel
from cdp_engine.errors import EngineError
from cdp_engine.fixed_point import from_units
from cdp_engine.logging_setup import configure_logging


def print_position(model, user):
    engine = model.engine
    debt, collateral_value = engine.get_account_information(user)
    weth = engine.get_collateral_balance_of_user(user, "WETH")
    print(f"  {user}: {from_units(weth):.4f} WETH, {from_units(debt):.2f} DSC debt, "
          f"collateral ${from_units(collateral_value):.2f}, "
          f"health factor {from_units(engine.health_factor(user)):.4f}")


def run_basic_simulation():
    # Initialize the protocol
    model = CollateralEngineModel({"WETH": 2000.0})

    print("Opening positions...")
    model.open_position("alice", "WETH", 1.0, 500.0)
    model.open_position("liquidator", "WETH", 10.0, 1000.0)
    print_position(model, "alice")
    print_position(model, "liquidator")

    print("\nAlice tries to mint 600 more DSC...")
    try:
        model.engine.mint_debt("alice", 600 * 10**18)
    except EngineError as e:
        print(f"  Rejected: {type(e).__name__}")
    print_position(model, "alice")

    for new_price in (1000.0, 900.0):
        print(f"\nSimulating price drop to ${new_price:.2f}")
        model.update_price("WETH", new_price)
        print_position(model, "alice")
        print(f"  Liquidatable positions: {model.liquidatable_users()}")

    print("\nLiquidator covers 200 DSC of Alice's debt...")
    values = model.engine.liquidate("liquidator", "WETH", "alice", 200 * 10**18)
    print(f"  Collateral seized: {from_units(values.collateral_seized):.4f} WETH")
    print(f"  Bonus: {from_units(values.bonus_collateral):.4f} WETH")

    print("\nFinal protocol state:")
    print_position(model, "alice")
    print_position(model, "liquidator")
    print(f"  System collateralization: {model.system_collateralization():.2f}")
    print(f"  DSC supply: {from_units(model.debt_token.total_supply):.2f}")


if __name__ == "__main__":
    configure_logging("WARNING")
    run_basic_simulation()
