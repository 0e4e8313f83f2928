"""
Test Suite for Portfolio

Covers weighted-average cost on buys, position checks on sells and
immutability of portfolio snapshots.
"""

import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from capital_gains.errors import ErrorKind, OperationError
from capital_gains.money import Money
from capital_gains.operation import Operation
from capital_gains.portfolio import Portfolio


def buy(unit_cost, quantity):
    return Operation.from_record({"operation": "buy", "unit-cost": unit_cost, "quantity": quantity})


def sell(unit_cost, quantity):
    return Operation.from_record({"operation": "sell", "unit-cost": unit_cost, "quantity": quantity})


class TestPortfolio(unittest.TestCase):

    def setUp(self):
        self.portfolio = Portfolio.new()

    def test_new_portfolio_is_empty(self):
        self.assertEqual(self.portfolio.position, 0)
        self.assertEqual(self.portfolio.average_cost, Money.zero())
        self.assertEqual(self.portfolio, Portfolio())

    def test_first_buy_sets_average(self):
        portfolio = self.portfolio.apply_buy(buy(10.00, 100))
        self.assertEqual(portfolio.position, 100)
        self.assertEqual(portfolio.average_cost, Money(1000))

    def test_weighted_average(self):
        portfolio = self.portfolio.apply_buy(buy(10.00, 10000)).apply_buy(buy(25.00, 5000))
        self.assertEqual(portfolio.position, 15000)
        self.assertEqual(portfolio.average_cost, Money(1500))

    def test_weighted_average_truncates(self):
        # (3 * 1000 + 1 * 1001) / 4 = 1000.25 -> 1000
        portfolio = self.portfolio.apply_buy(buy(10.00, 3)).apply_buy(buy(10.01, 1))
        self.assertEqual(portfolio.average_cost, Money(1000))

        # (1 * 1000 + 2 * 1001) / 3 = 1000.67 -> 1000
        portfolio = Portfolio.new().apply_buy(buy(10.00, 1)).apply_buy(buy(10.01, 2))
        self.assertEqual(portfolio.average_cost, Money(1000))

    def test_weighted_average_formula(self):
        for q1, p1, q2, p2 in [(7, 13.37, 11, 2.05), (1, 0.01, 999, 123.45), (250, 40.0, 3, 39.99)]:
            with self.subTest(q1=q1, p1=p1, q2=q2, p2=p2):
                first = buy(p1, q1)
                second = buy(p2, q2)
                portfolio = Portfolio.new().apply_buy(first).apply_buy(second)
                expected = (q1 * first.unit_price.amount + q2 * second.unit_price.amount) // (q1 + q2)
                self.assertEqual(portfolio.average_cost.amount, expected)

    def test_sell_keeps_average(self):
        portfolio = self.portfolio.apply_buy(buy(10.00, 100)).apply_sell(sell(50.00, 40))
        self.assertEqual(portfolio.position, 60)
        self.assertEqual(portfolio.average_cost, Money(1000))

    def test_sell_entire_position(self):
        portfolio = self.portfolio.apply_buy(buy(10.00, 100)).apply_sell(sell(5.00, 100))
        self.assertEqual(portfolio.position, 0)

    def test_buy_after_emptying_replaces_average(self):
        portfolio = (self.portfolio
                     .apply_buy(buy(10.00, 100))
                     .apply_sell(sell(5.00, 100))
                     .apply_buy(buy(20.00, 10)))
        self.assertEqual(portfolio.position, 10)
        self.assertEqual(portfolio.average_cost, Money(2000))

    def test_insufficient_position(self):
        portfolio = self.portfolio.apply_buy(buy(10.00, 100))
        with self.assertRaises(OperationError) as ctx:
            portfolio.apply_sell(sell(15.00, 150))
        self.assertEqual(ctx.exception.kind, ErrorKind.INSUFFICIENT_POSITION)

    def test_sell_from_empty_portfolio(self):
        with self.assertRaises(OperationError) as ctx:
            self.portfolio.apply_sell(sell(15.00, 1))
        self.assertEqual(ctx.exception.kind, ErrorKind.INSUFFICIENT_POSITION)

    def test_transitions_return_new_instances(self):
        after_buy = self.portfolio.apply_buy(buy(10.00, 100))
        self.assertIsNot(after_buy, self.portfolio)
        self.assertEqual(self.portfolio.position, 0)

        after_sell = after_buy.apply_sell(sell(10.00, 50))
        self.assertEqual(after_buy.position, 100)
        self.assertEqual(after_sell.position, 50)

    def test_apply_dispatches_on_kind(self):
        portfolio = self.portfolio.apply(buy(10.00, 100)).apply(sell(10.00, 30))
        self.assertEqual(portfolio.position, 70)


if __name__ == '__main__':
    unittest.main()
