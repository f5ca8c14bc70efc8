"""
Visualization simulation for the collateral engine.

This script opens positions with varying risk profiles and runs a random
price walk with a liquidator sweeping unsafe positions.
"""

import numpy as np

from cdp_engine.economic_model import CollateralEngineModel
from cdp_engine.errors import EngineError
from cdp_engine.logging_setup import configure_logging


def run_visualization_simulation():
    # Initialize the protocol
    model = CollateralEngineModel({"WETH": 2000.0})
    rng = np.random.default_rng(42)

    print("Opening positions...")
    # Target collateralization ratios from 210% to 400%
    for i in range(10):
        collateral = float(rng.uniform(2.0, 10.0))
        target_cr = 2.1 + (i * 1.9 / 10)
        debt = round(collateral * 2000 / target_cr, 2)
        try:
            model.open_position(f"user{i}", "WETH", collateral, debt)
            print(f"user{i}: {collateral:.2f} WETH, {debt:.2f} DSC, CR: {target_cr*100:.0f}%")
        except EngineError as e:
            print(f"user{i} rejected: {e}")

    # Well funded liquidator
    model.open_position("liquidator", "WETH", 500.0, 50000.0)

    print("\nRunning simulation with visualizations...")
    results = model.simulate_market_scenario(
        30, price_volatility=0.01, liquidator="liquidator", plot_results=True, seed=7
    )

    print("\nSimulation Results:")
    for key, value in results.items():
        print(f"  {key}: {value}")


if __name__ == "__main__":
    configure_logging("INFO")
    run_visualization_simulation()
