"""Tests for abyss/calculator.py."""

import unittest

from abyss.assets import Asset
from abyss.calculator import RATE_SCALE, CapacityResult, available_capacity, compute, exchange_rate
from abyss.errors import DivisionByZero
from abyss.schemas import PoolSnapshot


class TestExchangeRate(unittest.TestCase):
    def test_floors(self):
        self.assertEqual(exchange_rate(1_000_000_000000, 900_000_000000), 1_111_111_111)
        self.assertEqual(exchange_rate(2, 3), 666_666_666)

    def test_identity(self):
        self.assertEqual(exchange_rate(5, 5), RATE_SCALE)

    def test_beyond_64_bits(self):
        # 2**64 + 1 underlying over 3 shares: (2**64 + 1) * 1e9 // 3
        self.assertEqual(exchange_rate(2**64 + 1, 3), 6148914691236517205666666666)
        self.assertEqual(exchange_rate(2**100, 2**70), 2**30 * RATE_SCALE)

    def test_zero_shares(self):
        with self.assertRaises(DivisionByZero):
            exchange_rate(100, 0)
        # also catchable as the builtin
        with self.assertRaises(ZeroDivisionError):
            exchange_rate(0, 0)


class TestAvailableCapacity(unittest.TestCase):
    def test_difference_below_cap(self):
        self.assertEqual(available_capacity(1_200_000_000000, 1_000_000_000000), 200_000_000000)

    def test_zero_at_or_above_cap(self):
        self.assertEqual(available_capacity(100, 100), 0)
        self.assertEqual(available_capacity(100, 150), 0)

    def test_beyond_64_bits(self):
        self.assertEqual(available_capacity(2**80, 2**79), 2**79)


class TestCompute(unittest.TestCase):
    def test_usdc_scenario(self):
        snapshot = PoolSnapshot.from_values(
            Asset.USDC,
            vault_share_supply=450_000_000000,
            pool_total_supply=1_000_000_000000,
            pool_supply_shares=900_000_000000,
            pool_supply_cap=1_200_000_000000,
        )
        result = compute(snapshot)
        self.assertEqual(
            result,
            CapacityResult(
                total_deposited="499999999950",
                available_capacity="200000000000",
                exchange_rate="1111111111",
            ),
        )
        self.assertEqual(result.available_capacity_units, 200_000_000000)
        self.assertEqual(Asset.USDC.format(result.available_capacity), "200,000")

    def test_large_sui_pool(self):
        # u128-sized values, well past 2**63
        snapshot = PoolSnapshot.from_values(
            Asset.SUI,
            vault_share_supply=2**70,
            pool_total_supply=3 * 2**70,
            pool_supply_shares=2 * 2**70,
            pool_supply_cap=2**72,
        )
        result = compute(snapshot)
        self.assertEqual(result.exchange_rate_scaled, 1_500_000_000)
        self.assertEqual(result.total_deposited_units, 2**70 * 3 // 2)
        self.assertEqual(result.available_capacity_units, 2**72 - 3 * 2**70)

    def test_full_pool(self):
        snapshot = PoolSnapshot.from_values(Asset.DEEP, 10, 500, 500, 400)
        self.assertEqual(compute(snapshot).available_capacity, "0")

    def test_zero_supply_shares(self):
        snapshot = PoolSnapshot.from_values(Asset.WAL, 10, 0, 0, 400)
        with self.assertRaises(DivisionByZero):
            compute(snapshot)


if __name__ == "__main__":
    unittest.main()
