import unittest
from decimal import Decimal

from leasemodel.assumptions.model import FixedRent, PartnerInvestmentRent, RentModel, RevenueShareRent
from leasemodel.assumptions.resolver import resolve
from leasemodel.assumptions.validation import collect_errors, validate_resolved
from leasemodel.errors import ValidationError
from tests.fixtures import (
    fixed_rent_proposal,
    proposal,
    revenue_share_proposal,
    system_rates,
    transition_snapshot,
)

D = Decimal


class TestResolver(unittest.TestCase):
    def test_resolves_partner_proposal(self):
        r = resolve(proposal(), transition_snapshot(), system_rates())
        self.assertEqual(r.contract_years, 25)
        self.assertIs(r.rent_model, RentModel.PARTNER_INVESTMENT)
        self.assertIsInstance(r.rent, PartnerInvestmentRent)
        self.assertEqual(r.rent.investment_basis, D("100000000"))
        self.assertEqual(r.enrollment.ramp, (D("0.5"), D("0.6"), D("0.7"), D("0.8"), D("0.9")))
        self.assertEqual(r.curriculum.secondary_start_year, 2030)
        self.assertEqual(r.simulated_years()[0], 2025)
        self.assertEqual(r.simulated_years()[-1], 2052)
        self.assertEqual(collect_errors(r), [])

    def test_rent_model_is_case_insensitive(self):
        r = resolve(revenue_share_proposal(rent_model="revenue_share"), transition_snapshot(), system_rates())
        self.assertIsInstance(r.rent, RevenueShareRent)
        r = resolve(fixed_rent_proposal(), transition_snapshot(), system_rates())
        self.assertIsInstance(r.rent, FixedRent)

    def test_rates_fall_back_to_shared_snapshot(self):
        r = resolve(proposal(), transition_snapshot(), system_rates())
        self.assertEqual(r.rates, system_rates())
        self.assertEqual(r.transition, transition_snapshot())

    def test_proposal_fields_take_precedence(self):
        p = proposal(discount_rate="0.1", zakat_rate="0.03", transition_base_rent="4000000")
        r = resolve(p, transition_snapshot(), system_rates())
        self.assertEqual(r.rates.discount_rate, D("0.1"))
        self.assertEqual(r.rates.zakat_rate, D("0.03"))
        self.assertEqual(r.rates.debt_interest_rate, D("0.06"))
        self.assertEqual(r.transition.base_rent, D("4000000"))
        self.assertEqual(r.transition.rent_growth_rate, D("0.03"))

    def test_transition_years_override(self):
        years = [
            {"year": 2027, "students": 10, "average_tuition": "1"},
            {"year": 2025, "students": 30, "average_tuition": "3"},
            {"year": 2026, "students": 20, "average_tuition": "2"},
        ]
        r = resolve(proposal(transition_years=years), transition_snapshot(), system_rates())
        self.assertEqual([t.year for t in r.transition.years], [2025, 2026, 2027])
        self.assertEqual(r.transition.for_year(2025).students, 30)

    def test_snapshots_are_not_modified(self):
        shared_t, shared_r = transition_snapshot(), system_rates()
        resolve(proposal(discount_rate="0.2"), shared_t, shared_r)
        self.assertEqual(shared_r.discount_rate, D("0.08"))
        self.assertEqual(shared_t, transition_snapshot())

    def test_missing_required_without_fallback(self):
        from leasemodel.assumptions.model import SystemRates
        with self.assertRaises(ValidationError) as ctx:
            resolve(proposal(), transition_snapshot(), SystemRates())
        self.assertIn("discount_rate is required", ctx.exception.errors)

    def test_missing_rent_field(self):
        p = proposal()
        del p["rent"]["yield_rate"]
        with self.assertRaises(ValidationError) as ctx:
            resolve(p, transition_snapshot(), system_rates())
        self.assertIn("rent.yield_rate is required", ctx.exception.errors)

    def test_errors_are_gathered(self):
        p = proposal(rent_model="LEASEBACK")
        del p["staff"]
        p["enrollment"]["capacity"] = "many"
        with self.assertRaises(ValidationError) as ctx:
            resolve(p, transition_snapshot(), system_rates())
        errors = ctx.exception.errors
        self.assertGreaterEqual(len(errors), 3)
        self.assertTrue(any(e.startswith("rent_model") for e in errors))
        self.assertIn("staff is required", errors)
        self.assertTrue(any(e.startswith("enrollment.capacity") for e in errors))

    def test_range_checks(self):
        p = proposal(contract_years=20, other_opex_ratio="1.5")
        p["enrollment"]["ramp"] = ["0.5", "0.6", "0.7", "0.8"]
        with self.assertRaises(ValidationError) as ctx:
            resolve(p, transition_snapshot(), system_rates())
        msg = str(ctx.exception)
        self.assertIn("contract horizon", msg)
        self.assertIn("ramp-up needs exactly 5", msg)
        self.assertIn("other opex ratio", msg)

    def test_asset_inherits_category_life(self):
        r = resolve(proposal(), transition_snapshot(), system_rates())
        building = [a for a in r.assets if a.category == "building"][0]
        self.assertEqual(building.useful_life, 25)

    def test_unknown_category_rejected(self):
        p = proposal()
        p["capex"]["assets"].append({"purchase_year": 2030, "amount": "1", "useful_life": 2, "category": "boats"})
        with self.assertRaises(ValidationError) as ctx:
            resolve(p, transition_snapshot(), system_rates())
        self.assertIn("unknown category", str(ctx.exception))

    def test_malformed_shapes_are_validation_errors(self):
        cases = [
            (proposal(capex=[{"purchase_year": 2028, "amount": "1"}]), "capex must be an object"),
            (proposal(transition_years=3), "transition_years must be a list"),
            (proposal(transition_years=[2025]), "transition_years[0] must be an object"),
        ]
        ramp_not_list = proposal()
        ramp_not_list["enrollment"]["ramp"] = 5
        cases.append((ramp_not_list, "enrollment.ramp must be a list"))
        assets_not_list = proposal()
        assets_not_list["capex"]["assets"] = {"purchase_year": 2028}
        cases.append((assets_not_list, "capex.assets must be a list"))
        bad_category = proposal()
        bad_category["capex"]["assets"][0]["category"] = ["building"]
        cases.append((bad_category, "capex.assets[0].category must be a string"))
        for p, expected in cases:
            with self.assertRaises(ValidationError) as ctx:
                resolve(p, transition_snapshot(), system_rates())
            self.assertIn(expected, ctx.exception.errors)

    def test_proposal_must_be_object(self):
        with self.assertRaises(ValidationError):
            resolve(["not", "a", "proposal"], transition_snapshot(), system_rates())

    def test_validate_resolved_accepts_clean_input(self):
        r = resolve(proposal(), transition_snapshot(), system_rates())
        validate_resolved(r)  # should not raise


if __name__ == '__main__':
    unittest.main()
