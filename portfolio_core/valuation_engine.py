"""
portfolio_core/valuation_engine.py
----------------------------------
Intrinsic-value models and their aggregate recommendation.

Models
------
* DCF                — 5-year FCF projection + Gordon-growth terminal value
* Dividend Discount  — single-stage Gordon growth on the dividend
* Graham Formula     — sqrt(22.5 · EPS · book value per share)
* Ratios             — P/E, P/B, P/S, PEG, EV multiples, fair-value label

Each model validates its own required fundamentals (``*Inputs.from_
fundamentals``) before computing, and every denominator is guarded, so no
model ever returns ``NaN`` or ``inf``.

Design contract:
  - No data fetching — price and fundamentals are supplied by the caller
  - Fully deterministic and stateless (all methods are @staticmethod)
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Tuple, Union

from portfolio_core.config import (
    DCF_DISCOUNT_RATE,
    DCF_GROWTH_RATE,
    DCF_PROJECTION_YEARS,
    DCF_SIGNAL_BAND,
    DCF_TERMINAL_GROWTH_RATE,
    DDM_GROWTH_RATE,
    DDM_REQUIRED_RETURN,
    DDM_SIGNAL_BAND,
    EBITDA_PROXY_MULTIPLIER,
    GRAHAM_MULTIPLIER,
    GRAHAM_SIGNAL_BAND,
    OVERVALUED_MIN_PB,
    OVERVALUED_MIN_PE,
    RATIO_EARNINGS_GROWTH,
    UNDERVALUED_MAX_PB,
    UNDERVALUED_MAX_PE,
)
from portfolio_core.enums import Signal, ValuationLabel, ValuationModel
from portfolio_core.errors import InvalidInputError, UnknownCategoryError
from portfolio_core.models import (
    DCFInputs,
    DCFProjection,
    DCFYear,
    DividendInputs,
    Fundamentals,
    GrahamInputs,
    OverallRecommendation,
    RatioAnalysis,
    RatioInputs,
    ValuationAssumptions,
    ValuationReport,
    ValuationResult,
)

logger = logging.getLogger(__name__)


class ValuationEngine:
    """
    Map fundamentals + current price → intrinsic value, upside and signal.

    Entry point::

        report = ValuationEngine.valuate("AAPL", 189.5, fundamentals, "all")
        report.overall.recommendation   # Signal.BUY / SELL / HOLD
    """

    # ------------------------------------------------------------------ #
    #  Public entry point
    # ------------------------------------------------------------------ #

    @staticmethod
    def valuate(
        symbol: str,
        current_price: float,
        fundamentals: Fundamentals,
        model: Union[ValuationModel, str] = ValuationModel.ALL,
        assumptions: Optional[ValuationAssumptions] = None,
    ) -> ValuationReport:
        """
        Run one model (or all of them) and aggregate the signals.

        Parameters
        ----------
        model:
            A :class:`ValuationModel` or its value: ``"dcf"``,
            ``"dividend"``, ``"graham"``, ``"ratios"`` or ``"all"``.
        assumptions:
            Growth / discount rates; defaults from ``config``.

        Raises
        ------
        UnknownCategoryError
            Unrecognised *model* name.
        MissingFundamentalsError
            A model that runs lacks a required field.
        InvalidInputError
            Non-positive price or a degenerate formula input.  In ``all``
            mode the first failing model aborts the whole report.
        """
        selected = ValuationEngine._resolve_model(model)
        a = assumptions or ValuationAssumptions()
        run_all = selected is ValuationModel.ALL

        logger.debug("valuate %s at %.2f (%s)", symbol, current_price, selected.value)
        report = ValuationReport(symbol=symbol, current_price=current_price)

        if run_all or selected is ValuationModel.DCF:
            report.dcf = ValuationEngine.dcf(
                symbol, current_price, fundamentals,
                growth_rate=a.growth_rate,
                discount_rate=a.discount_rate,
                terminal_growth_rate=a.terminal_growth_rate,
                years=a.projection_years,
            )
        if run_all or selected is ValuationModel.DIVIDEND:
            report.dividend_discount = ValuationEngine.dividend_discount(
                symbol, current_price, fundamentals,
                growth_rate=a.dividend_growth_rate,
                required_return=a.required_return,
            )
        if run_all or selected is ValuationModel.GRAHAM:
            report.graham = ValuationEngine.graham(symbol, current_price, fundamentals)
        if run_all or selected is ValuationModel.RATIOS:
            report.ratios = ValuationEngine.ratios(
                symbol, current_price, fundamentals,
                earnings_growth=a.earnings_growth,
            )

        report.overall = ValuationEngine.aggregate(report.model_results())
        logger.debug(
            "valuate %s → %s (confidence %.2f)",
            symbol, report.overall.recommendation.value, report.overall.confidence,
        )
        return report

    # ------------------------------------------------------------------ #
    #  DCF
    # ------------------------------------------------------------------ #

    @staticmethod
    def project_dcf(
        free_cash_flow: float,
        shares_outstanding: float,
        growth_rate: float = DCF_GROWTH_RATE,
        discount_rate: float = DCF_DISCOUNT_RATE,
        terminal_growth_rate: float = DCF_TERMINAL_GROWTH_RATE,
        years: int = DCF_PROJECTION_YEARS,
    ) -> DCFProjection:
        """
        Year-by-year discounted cash flow projection.

        Formula::

            FCF_t  = FCF_0 · (1 + g)^t                      t = 1..N
            PV_t   = FCF_t / (1 + r)^t
            TV     = FCF_N · (1 + g_T) / (r − g_T)
            EV     = Σ PV_t + TV / (1 + r)^N
            value  = EV / shares

        Raises
        ------
        InvalidInputError
            ``shares <= 0``, ``years < 1``, ``r <= -1`` or ``r <= g_T``
            (terminal value diverges).
        """
        if shares_outstanding <= 0:
            raise InvalidInputError("shares_outstanding must be positive.")
        if years < 1:
            raise InvalidInputError("DCF needs at least one projection year.")
        if discount_rate <= -1:
            raise InvalidInputError("discount_rate must be greater than -100%.")
        if discount_rate <= terminal_growth_rate:
            logger.warning(
                "DCF rejected: discount %.4f <= terminal growth %.4f",
                discount_rate, terminal_growth_rate,
            )
            raise InvalidInputError(
                f"Discount rate ({discount_rate}) must exceed terminal growth "
                f"rate ({terminal_growth_rate})."
            )

        rows: List[DCFYear] = []
        projected = free_cash_flow
        for year in range(1, years + 1):
            projected *= (1 + growth_rate)
            present = projected / (1 + discount_rate) ** year
            rows.append(DCFYear(year=year, projected_fcf=projected, present_value=present))

        terminal_value = projected * (1 + terminal_growth_rate) / (discount_rate - terminal_growth_rate)
        terminal_pv    = terminal_value / (1 + discount_rate) ** years
        enterprise     = sum(r.present_value for r in rows) + terminal_pv

        return DCFProjection(
            years=rows,
            terminal_value=terminal_value,
            terminal_present_value=terminal_pv,
            enterprise_value=enterprise,
            intrinsic_value=enterprise / shares_outstanding,
        )

    @staticmethod
    def dcf(
        symbol: str,
        current_price: float,
        fundamentals: Fundamentals,
        growth_rate: float = DCF_GROWTH_RATE,
        discount_rate: float = DCF_DISCOUNT_RATE,
        terminal_growth_rate: float = DCF_TERMINAL_GROWTH_RATE,
        years: int = DCF_PROJECTION_YEARS,
    ) -> ValuationResult:
        """DCF intrinsic value; BUY above 1.15× price, SELL below 0.85×."""
        ValuationEngine._check_price(current_price)
        inputs = DCFInputs.from_fundamentals(fundamentals)

        projection = ValuationEngine.project_dcf(
            inputs.free_cash_flow, inputs.shares_outstanding,
            growth_rate, discount_rate, terminal_growth_rate, years,
        )
        value = projection.intrinsic_value

        return ValuationResult(
            model=ValuationModel.DCF,
            intrinsic_value=value,
            current_price=current_price,
            upside=ValuationEngine.upside(value, current_price),
            recommendation=ValuationEngine.classify_signal(value, current_price, DCF_SIGNAL_BAND),
            assumptions={
                "growth_rate":          growth_rate * 100,
                "discount_rate":        discount_rate * 100,
                "terminal_growth_rate": terminal_growth_rate * 100,
            },
            details={"enterprise_value": projection.enterprise_value},
        )

    # ------------------------------------------------------------------ #
    #  Dividend Discount Model
    # ------------------------------------------------------------------ #

    @staticmethod
    def dividend_discount(
        symbol: str,
        current_price: float,
        fundamentals: Fundamentals,
        growth_rate: float = DDM_GROWTH_RATE,
        required_return: float = DDM_REQUIRED_RETURN,
    ) -> ValuationResult:
        """
        Gordon growth: ``D · (1 + g) / (r − g)``.

        BUY above 1.10× price, SELL below 0.90×.  ``r <= g`` raises
        :class:`InvalidInputError` rather than producing a negative or
        infinite value.
        """
        ValuationEngine._check_price(current_price)
        inputs = DividendInputs.from_fundamentals(fundamentals)

        if inputs.dividend_per_share < 0:
            raise InvalidInputError("dividend_per_share must not be negative.")
        if required_return <= growth_rate:
            logger.warning(
                "DDM rejected for %s: required return %.4f <= growth %.4f",
                symbol, required_return, growth_rate,
            )
            raise InvalidInputError(
                f"Required return ({required_return}) must exceed dividend "
                f"growth rate ({growth_rate})."
            )

        value = inputs.dividend_per_share * (1 + growth_rate) / (required_return - growth_rate)

        return ValuationResult(
            model=ValuationModel.DIVIDEND,
            intrinsic_value=value,
            current_price=current_price,
            upside=ValuationEngine.upside(value, current_price),
            recommendation=ValuationEngine.classify_signal(value, current_price, DDM_SIGNAL_BAND),
            assumptions={
                "dividend_growth_rate": growth_rate * 100,
                "required_return":      required_return * 100,
            },
            details={"dividend_yield": inputs.dividend_per_share / current_price * 100},
        )

    # ------------------------------------------------------------------ #
    #  Graham Formula
    # ------------------------------------------------------------------ #

    @staticmethod
    def graham(symbol: str, current_price: float, fundamentals: Fundamentals) -> ValuationResult:
        """
        Benjamin Graham number ``sqrt(22.5 · EPS · BVPS)``.

        BUY above 1.20× price, SELL below 0.80×.  Undefined (and rejected)
        for non-positive EPS or book value per share.
        """
        ValuationEngine._check_price(current_price)
        inputs = GrahamInputs.from_fundamentals(fundamentals)
        bvps = inputs.book_value_per_share

        if inputs.eps <= 0 or bvps <= 0:
            logger.warning("Graham rejected for %s: eps=%s bvps=%s", symbol, inputs.eps, bvps)
            raise InvalidInputError(
                f"Graham formula needs positive EPS and book value per share "
                f"(got EPS={inputs.eps}, BVPS={bvps})."
            )

        value = math.sqrt(GRAHAM_MULTIPLIER * inputs.eps * bvps)

        return ValuationResult(
            model=ValuationModel.GRAHAM,
            intrinsic_value=value,
            current_price=current_price,
            upside=ValuationEngine.upside(value, current_price),
            recommendation=ValuationEngine.classify_signal(value, current_price, GRAHAM_SIGNAL_BAND),
            details={"eps": inputs.eps, "book_value_per_share": bvps},
        )

    # ------------------------------------------------------------------ #
    #  Ratio analysis
    # ------------------------------------------------------------------ #

    @staticmethod
    def ratios(
        symbol: str,
        current_price: float,
        fundamentals: Fundamentals,
        earnings_growth: float = RATIO_EARNINGS_GROWTH,
    ) -> RatioAnalysis:
        """
        Valuation multiples and the fair-value label.

        * ``Undervalued`` — P/E < 15 **and** P/B < 2
        * ``Overvalued``  — P/E > 25 **or** P/B > 4
        * ``Fair Value``  — anything else

        EBITDA is approximated as ``net_income × 1.5``.  Percent figures
        (ROE, ROA, margins) are ``None`` when not supplied.
        """
        ValuationEngine._check_price(current_price)
        inputs = RatioInputs.from_fundamentals(fundamentals)

        _nonzero = ValuationEngine._nonzero
        shares = inputs.shares_outstanding
        if shares <= 0:
            raise InvalidInputError("shares_outstanding must be positive.")

        bvps       = inputs.book_value / shares
        market_cap = current_price * shares
        ebitda     = inputs.net_income * EBITDA_PROXY_MULTIPLIER
        ev         = market_cap + inputs.total_debt - inputs.cash

        pe  = current_price / _nonzero(inputs.eps, "eps")
        pb  = current_price / _nonzero(bvps, "book value per share")
        ps  = market_cap / _nonzero(inputs.revenue, "revenue")
        peg = pe / _nonzero(earnings_growth, "earnings growth")

        if pe < UNDERVALUED_MAX_PE and pb < UNDERVALUED_MAX_PB:
            label = ValuationLabel.UNDERVALUED
        elif pe > OVERVALUED_MIN_PE or pb > OVERVALUED_MIN_PB:
            label = ValuationLabel.OVERVALUED
        else:
            label = ValuationLabel.FAIR_VALUE

        def _pct(value):
            return None if value is None else value * 100

        return RatioAnalysis(
            pe=pe,
            pb=pb,
            ps=ps,
            peg=peg,
            ev_revenue=ev / inputs.revenue,
            ev_ebitda=ev / _nonzero(ebitda, "EBITDA"),
            debt_to_equity=inputs.total_debt / _nonzero(inputs.book_value, "book value"),
            valuation=label,
            roe=_pct(inputs.roe),
            roa=_pct(inputs.roa),
            current_ratio=inputs.current_ratio,
            margins={
                "gross":     _pct(inputs.gross_margin),
                "operating": _pct(inputs.operating_margin),
                "net":       _pct(inputs.net_margin),
            },
        )

    # ------------------------------------------------------------------ #
    #  Aggregation & shared helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def aggregate(results: List[ValuationResult]) -> OverallRecommendation:
        """
        Majority vote between BUY and SELL; ties and no votes are HOLD.

        ``confidence = max(buys, sells) / models_counted`` (``0.0`` when no
        signal-bearing model ran).
        """
        signals = [r.recommendation for r in results]
        buys  = signals.count(Signal.BUY)
        sells = signals.count(Signal.SELL)

        if buys > sells:
            verdict = Signal.BUY
        elif sells > buys:
            verdict = Signal.SELL
        else:
            verdict = Signal.HOLD

        confidence = max(buys, sells) / len(signals) if signals else 0.0
        return OverallRecommendation(
            recommendation=verdict,
            confidence=confidence,
            summary=f"Based on {len(signals)} valuation methods",
        )

    @staticmethod
    def classify_signal(intrinsic: float, price: float, band: Tuple[float, float]) -> Signal:
        """BUY if ``intrinsic > price·buy``, SELL if ``< price·sell`` (both strict)."""
        buy_above, sell_below = band
        if intrinsic > price * buy_above:
            return Signal.BUY
        if intrinsic < price * sell_below:
            return Signal.SELL
        return Signal.HOLD

    @staticmethod
    def upside(intrinsic: float, price: float) -> float:
        """Percent difference of intrinsic value over price."""
        ValuationEngine._check_price(price)
        return (intrinsic - price) / price * 100

    @staticmethod
    def _check_price(price: float) -> None:
        if price is None or price <= 0:
            raise InvalidInputError(f"current_price must be positive (got {price}).")

    @staticmethod
    def _nonzero(value: float, label: str) -> float:
        if value == 0:
            raise InvalidInputError(f"Cannot compute ratio: {label} is zero.")
        return value

    @staticmethod
    def _resolve_model(model: Union[ValuationModel, str]) -> ValuationModel:
        if isinstance(model, ValuationModel):
            return model
        try:
            return ValuationModel(str(model).lower())
        except ValueError as exc:
            valid = [m.value for m in ValuationModel]
            raise UnknownCategoryError(
                f"Unknown valuation model: {model!r}. Valid options: {valid}"
            ) from exc
