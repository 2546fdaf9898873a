import unittest
from decimal import Decimal

from leasemodel.finance.discount import annuity_factor, irr, npv
from leasemodel.metrics.aggregate import aggregate, average_roe, contract_window, payback_year
from leasemodel.pipeline import run_proposal, simulate
from leasemodel.statements.rollforward import roll_forward
from tests.fixtures import proposal, resolved, system_rates, transition_snapshot

D = Decimal


class TestPayback(unittest.TestCase):
    def test_first_non_negative_cumulative(self):
        self.assertEqual(payback_year([D(-100), D(40), D(60), D(10)]), 2)
        self.assertEqual(payback_year([D(5), D(-10)]), 0)
        self.assertIsNone(payback_year([D(-100), D(10), D(10)]))
        self.assertIsNone(payback_year([]))


class TestAggregate(unittest.TestCase):
    def setUp(self):
        self.r = resolved()
        self.periods = roll_forward(self.r)
        self.metrics = aggregate(self.periods, self.r.rates.discount_rate)
        self.window = contract_window(self.periods)

    def test_transition_years_excluded(self):
        self.assertEqual(self.metrics.contract_years, 25)
        self.assertEqual(self.window[0].year, 2028)
        rents = [p.profit_loss.rent_expense for p in self.window]
        self.assertEqual(self.metrics.total_rent, sum(rents))

    def test_npv_goes_through_shared_implementation(self):
        rents = [p.profit_loss.rent_expense for p in self.window]
        ebitdas = [p.profit_loss.ebitda for p in self.window]
        self.assertEqual(self.metrics.npv_rent, npv(rents, D("0.08")))
        self.assertEqual(self.metrics.npv_ebitda, npv(ebitdas, D("0.08")))
        self.assertGreater(self.metrics.npv_rent, 0)

    def test_nav(self):
        m = self.metrics
        self.assertEqual(m.nav, m.total_ebitda / 25 - m.total_rent / 25)
        self.assertEqual(m.average_ebitda, m.total_ebitda / 25)
        self.assertEqual(m.net_tenant_surplus, m.npv_ebitda - m.npv_rent)
        self.assertEqual(m.annualized_nav, m.net_tenant_surplus * annuity_factor(D("0.08"), 25))

    def test_irr_and_payback_on_net_change_in_cash(self):
        flows = [p.cash_flow.net_change for p in self.window]
        self.assertLess(flows[0], 0)
        self.assertEqual(self.metrics.irr, irr(flows))
        self.assertIsNotNone(self.metrics.irr)
        self.assertEqual(self.metrics.payback_year, payback_year(flows))
        self.assertIsNotNone(self.metrics.payback_year)

    def test_debt_and_cash(self):
        m = self.metrics
        self.assertEqual(m.peak_debt, max(p.balance_sheet.debt for p in self.window))
        self.assertEqual(m.final_debt, self.periods[-1].balance_sheet.debt)
        self.assertEqual(m.final_cash, self.periods[-1].balance_sheet.cash)
        self.assertEqual(m.total_net_income, sum(p.profit_loss.net_income for p in self.window))

    def test_average_roe(self):
        equity = sum(p.balance_sheet.equity for p in self.window)
        self.assertGreater(equity, 0)
        self.assertEqual(self.metrics.average_roe, self.metrics.total_net_income / equity)

    def test_average_roe_zero_without_positive_equity(self):
        self.assertEqual(average_roe([]), D(0))

    def test_no_contract_years(self):
        with self.assertRaises(ValueError):
            aggregate(self.periods[:3], D("0.08"))


class TestPipeline(unittest.TestCase):
    def test_run_proposal_matches_simulate(self):
        sim = run_proposal(proposal(), transition_snapshot(), system_rates())
        again = simulate(resolved())
        self.assertEqual(sim, again)
        self.assertEqual(len(sim.periods), 28)

    def test_irr_unavailable_is_not_a_failure(self):
        # no capital spend: cash grows every contract year
        p = proposal(capex={})
        sim = run_proposal(p, transition_snapshot(), system_rates())
        self.assertIsNone(sim.metrics.irr)
        self.assertEqual(sim.metrics.payback_year, 0)


if __name__ == '__main__':
    unittest.main()
