"""
tests/test_valuation_engine.py
------------------------------
Unit tests for ValuationEngine.

Test coverage:
    DCF                 — projection rows, perpetuity identity, signals, r <= g
    Dividend discount   — Gordon growth value, yield, r <= g guard
    Graham formula      — worked example, non-positive inputs
    Ratios              — multiples and the fair-value label
    Signal boundaries   — strict thresholds
    Aggregation         — majority vote, ties, empty vote
    valuate()           — model selection, missing fundamentals, bad price
"""

import math
import unittest

from portfolio_core.config import DCF_SIGNAL_BAND, GRAHAM_SIGNAL_BAND
from portfolio_core.enums import Signal, ValuationLabel, ValuationModel
from portfolio_core.errors import (
    InvalidInputError,
    MissingFundamentalsError,
    UnknownCategoryError,
)
from portfolio_core.models import Fundamentals, ValuationAssumptions, ValuationResult
from portfolio_core.valuation_engine import ValuationEngine


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

def _full_fundamentals(**overrides) -> Fundamentals:
    values = dict(
        revenue=500.0,
        net_income=200.0,
        free_cash_flow=100.0,
        total_debt=100.0,
        cash=50.0,
        shares_outstanding=10.0,
        book_value=500.0,          # BVPS 50
        dividend_per_share=2.0,
        eps=10.0,
        roe=0.15,
        gross_margin=0.40,
    )
    values.update(overrides)
    return Fundamentals(**values)


def _result(signal: Signal) -> ValuationResult:
    return ValuationResult(ValuationModel.DCF, 1.0, 1.0, 0.0, signal)


# No-growth DCF: every year's FCF is 100 and EV collapses to 100 / 0.10.
_FLAT_DCF = dict(growth_rate=0.0, discount_rate=0.10, terminal_growth_rate=0.0)


# ===========================================================================
# 1. DCF
# ===========================================================================

class TestDCF(unittest.TestCase):

    def test_projection_rows(self):
        p = ValuationEngine.project_dcf(100, 10, growth_rate=0.10, discount_rate=0.10,
                                        terminal_growth_rate=0.03)
        self.assertEqual([r.year for r in p.years], [1, 2, 3, 4, 5])
        self.assertAlmostEqual(p.years[0].projected_fcf, 110.0)
        self.assertAlmostEqual(p.years[0].present_value, 100.0)
        self.assertAlmostEqual(p.enterprise_value,
                               sum(r.present_value for r in p.years) + p.terminal_present_value)

    def test_flat_cash_flow_equals_perpetuity(self):
        p = ValuationEngine.project_dcf(100, 10, **_FLAT_DCF)
        self.assertAlmostEqual(p.enterprise_value, 1000.0)
        self.assertAlmostEqual(p.intrinsic_value, 100.0)

    def test_signals(self):
        f = _full_fundamentals()
        self.assertEqual(ValuationEngine.dcf("X", 80, f, **_FLAT_DCF).recommendation, Signal.BUY)
        self.assertEqual(ValuationEngine.dcf("X", 100, f, **_FLAT_DCF).recommendation, Signal.HOLD)
        self.assertEqual(ValuationEngine.dcf("X", 120, f, **_FLAT_DCF).recommendation, Signal.SELL)

    def test_assumptions_reported_in_percent(self):
        r = ValuationEngine.dcf("X", 100, _full_fundamentals(), **_FLAT_DCF)
        self.assertAlmostEqual(r.assumptions["discount_rate"], 10.0)
        self.assertAlmostEqual(r.upside, 0.0)

    def test_discount_not_above_terminal_growth_raises(self):
        with self.assertRaises(InvalidInputError):
            ValuationEngine.project_dcf(100, 10, discount_rate=0.03, terminal_growth_rate=0.03)

    def test_zero_shares_raises(self):
        with self.assertRaises(InvalidInputError):
            ValuationEngine.project_dcf(100, 0)

    def test_missing_free_cash_flow(self):
        with self.assertRaises(MissingFundamentalsError) as ctx:
            ValuationEngine.dcf("X", 100, _full_fundamentals(free_cash_flow=None))
        self.assertEqual(ctx.exception.field, "free_cash_flow")
        self.assertIn("free_cash_flow", str(ctx.exception))


# ===========================================================================
# 2. Dividend discount
# ===========================================================================

class TestDividendDiscount(unittest.TestCase):

    def test_gordon_growth_value(self):
        r = ValuationEngine.dividend_discount("X", 40, _full_fundamentals(),
                                              growth_rate=0.05, required_return=0.10)
        self.assertAlmostEqual(r.intrinsic_value, 42.0)
        self.assertEqual(r.recommendation, Signal.HOLD)
        self.assertAlmostEqual(r.details["dividend_yield"], 5.0)

    def test_buy_above_ten_percent(self):
        r = ValuationEngine.dividend_discount("X", 35, _full_fundamentals(),
                                              growth_rate=0.05, required_return=0.10)
        self.assertEqual(r.recommendation, Signal.BUY)

    def test_required_return_not_above_growth_raises(self):
        for required in (0.05, 0.04):
            with self.assertRaises(InvalidInputError):
                ValuationEngine.dividend_discount("X", 40, _full_fundamentals(),
                                                  growth_rate=0.05, required_return=required)

    def test_missing_dividend(self):
        with self.assertRaises(MissingFundamentalsError) as ctx:
            ValuationEngine.dividend_discount("X", 40, Fundamentals())
        self.assertEqual(ctx.exception.field, "dividend_per_share")


# ===========================================================================
# 3. Graham formula
# ===========================================================================

class TestGraham(unittest.TestCase):

    def test_worked_example(self):
        r = ValuationEngine.graham("X", 40, _full_fundamentals())
        self.assertAlmostEqual(r.intrinsic_value, math.sqrt(11250))
        self.assertAlmostEqual(r.intrinsic_value, 106.066, places=3)
        self.assertAlmostEqual(r.upside, 165.165, places=3)
        self.assertEqual(r.recommendation, Signal.BUY)
        self.assertAlmostEqual(r.details["book_value_per_share"], 50.0)

    def test_negative_eps_raises(self):
        with self.assertRaises(InvalidInputError):
            ValuationEngine.graham("X", 40, _full_fundamentals(eps=-2.0))

    def test_negative_book_value_raises(self):
        with self.assertRaises(InvalidInputError):
            ValuationEngine.graham("X", 40, _full_fundamentals(book_value=-100.0))


# ===========================================================================
# 4. Ratios
# ===========================================================================

class TestRatios(unittest.TestCase):

    def test_multiples(self):
        f = _full_fundamentals(eps=2.0, book_value=100.0)     # BVPS 10
        r = ValuationEngine.ratios("X", 10, f, earnings_growth=10)
        self.assertAlmostEqual(r.pe, 5.0)
        self.assertAlmostEqual(r.pb, 1.0)
        self.assertAlmostEqual(r.ps, 0.2)          # cap 100 / revenue 500
        self.assertAlmostEqual(r.peg, 0.5)
        self.assertAlmostEqual(r.ev_revenue, 0.3)  # (100 + 100 - 50) / 500
        self.assertAlmostEqual(r.ev_ebitda, 0.5)   # 150 / (200 · 1.5)
        self.assertAlmostEqual(r.debt_to_equity, 1.0)
        self.assertAlmostEqual(r.roe, 15.0)
        self.assertIsNone(r.roa)
        self.assertAlmostEqual(r.margins["gross"], 40.0)
        self.assertIsNone(r.margins["net"])

    def test_labels(self):
        f = _full_fundamentals(eps=2.0, book_value=100.0)
        self.assertEqual(ValuationEngine.ratios("X", 10, f).valuation, ValuationLabel.UNDERVALUED)
        self.assertEqual(ValuationEngine.ratios("X", 40, f).valuation, ValuationLabel.FAIR_VALUE)
        self.assertEqual(ValuationEngine.ratios("X", 60, f).valuation, ValuationLabel.OVERVALUED)

    def test_zero_eps_raises(self):
        with self.assertRaises(InvalidInputError):
            ValuationEngine.ratios("X", 10, _full_fundamentals(eps=0.0))


# ===========================================================================
# 5. Signal boundaries
# ===========================================================================

class TestSignalBoundaries(unittest.TestCase):

    def test_exact_buy_multiple_is_hold(self):
        price = 100.0
        self.assertEqual(
            ValuationEngine.classify_signal(price * 1.15, price, DCF_SIGNAL_BAND), Signal.HOLD
        )

    def test_exact_sell_multiple_is_hold(self):
        price = 100.0
        self.assertEqual(
            ValuationEngine.classify_signal(price * 0.85, price, DCF_SIGNAL_BAND), Signal.HOLD
        )

    def test_just_beyond_bands(self):
        price = 100.0
        self.assertEqual(
            ValuationEngine.classify_signal(price * 1.20 + 1e-6, price, GRAHAM_SIGNAL_BAND),
            Signal.BUY,
        )
        self.assertEqual(
            ValuationEngine.classify_signal(price * 0.80 - 1e-6, price, GRAHAM_SIGNAL_BAND),
            Signal.SELL,
        )


# ===========================================================================
# 6. Aggregation
# ===========================================================================

class TestAggregate(unittest.TestCase):

    def test_majority_buy(self):
        overall = ValuationEngine.aggregate(
            [_result(Signal.BUY), _result(Signal.BUY), _result(Signal.SELL)]
        )
        self.assertEqual(overall.recommendation, Signal.BUY)
        self.assertAlmostEqual(overall.confidence, 2 / 3)
        self.assertEqual(overall.summary, "Based on 3 valuation methods")

    def test_tie_is_hold(self):
        overall = ValuationEngine.aggregate([_result(Signal.BUY), _result(Signal.SELL)])
        self.assertEqual(overall.recommendation, Signal.HOLD)
        self.assertAlmostEqual(overall.confidence, 0.5)

    def test_all_hold_has_zero_confidence(self):
        overall = ValuationEngine.aggregate([_result(Signal.HOLD)] * 3)
        self.assertEqual(overall.recommendation, Signal.HOLD)
        self.assertEqual(overall.confidence, 0.0)

    def test_no_votes(self):
        overall = ValuationEngine.aggregate([])
        self.assertEqual(overall.recommendation, Signal.HOLD)
        self.assertEqual(overall.confidence, 0.0)


# ===========================================================================
# 7. valuate()
# ===========================================================================

class TestValuate(unittest.TestCase):

    def test_all_runs_every_model(self):
        report = ValuationEngine.valuate("X", 40, _full_fundamentals(), "all")
        self.assertIsNotNone(report.dcf)
        self.assertIsNotNone(report.dividend_discount)
        self.assertIsNotNone(report.graham)
        self.assertIsNotNone(report.ratios)
        self.assertEqual(report.overall.summary, "Based on 3 valuation methods")

    def test_single_model_by_name(self):
        report = ValuationEngine.valuate("X", 40, _full_fundamentals(), "GRAHAM")
        self.assertIsNone(report.dcf)
        self.assertEqual(report.graham.recommendation, Signal.BUY)
        self.assertEqual(report.overall.recommendation, Signal.BUY)
        self.assertEqual(report.overall.confidence, 1.0)

    def test_ratios_only_counts_no_votes(self):
        report = ValuationEngine.valuate("X", 40, _full_fundamentals(), ValuationModel.RATIOS)
        self.assertEqual(report.overall.recommendation, Signal.HOLD)
        self.assertEqual(report.overall.confidence, 0.0)

    def test_assumptions_flow_through(self):
        report = ValuationEngine.valuate(
            "X", 100, _full_fundamentals(), "dcf",
            ValuationAssumptions(**_FLAT_DCF),
        )
        self.assertAlmostEqual(report.dcf.intrinsic_value, 100.0)

    def test_unknown_model_raises(self):
        with self.assertRaises(UnknownCategoryError):
            ValuationEngine.valuate("X", 40, _full_fundamentals(), "monte-carlo")

    def test_missing_field_propagates_in_all_mode(self):
        with self.assertRaises(MissingFundamentalsError):
            ValuationEngine.valuate("X", 40, _full_fundamentals(cash=None), "all")

    def test_non_positive_price_raises(self):
        with self.assertRaises(InvalidInputError):
            ValuationEngine.valuate("X", 0, _full_fundamentals(), "graham")


if __name__ == "__main__":
    unittest.main()
