"""
Unit tests for the checked arithmetic helpers.
"""

import unittest

from cdp_engine.constants import MAX_UINT256
from cdp_engine.errors import ArithmeticOverflow, ArithmeticUnderflow, DivisionByZero
from cdp_engine.fixed_point import (
    checked_add,
    checked_div,
    checked_mul,
    checked_sub,
    from_units,
    mul_div,
    to_units,
)


class TestFixedPoint(unittest.TestCase):
    def test_add_overflow_rejects(self):
        """Test that addition past uint256 raises instead of wrapping"""
        self.assertEqual(checked_add(MAX_UINT256 - 1, 1), MAX_UINT256)
        with self.assertRaises(ArithmeticOverflow):
            checked_add(MAX_UINT256, 1)

    def test_sub_underflow_rejects(self):
        """Test that subtraction below zero raises"""
        self.assertEqual(checked_sub(5, 5), 0)
        with self.assertRaises(ArithmeticUnderflow):
            checked_sub(4, 5)

    def test_mul_overflow_rejects(self):
        with self.assertRaises(ArithmeticOverflow):
            checked_mul(2**200, 2**100)

    def test_division_by_zero(self):
        with self.assertRaises(DivisionByZero):
            checked_div(1, 0)
        with self.assertRaises(DivisionByZero):
            mul_div(1, 1, 0)

    def test_mul_div_rounds_down(self):
        self.assertEqual(mul_div(10, 2, 3), 6)
        self.assertEqual(mul_div(200 * 10**18, 10**18, 900 * 10**18), 222222222222222222)

    def test_unit_conversion(self):
        """Test that human readable amounts convert without float drift"""
        self.assertEqual(to_units(0.1), 10**17)
        self.assertEqual(to_units(1.5), 15 * 10**17)
        self.assertEqual(to_units(2000, decimals=8), 2000 * 10**8)
        self.assertEqual(from_units(25 * 10**17), 2.5)


if __name__ == "__main__":
    unittest.main()
