"""
portfolio_core/metrics_engine.py
--------------------------------
Portfolio-level return / risk figures.

Two families live here:

* :meth:`MetricsEngine.compute_metrics` — the forward-looking figures the
  optimizer works with (weighted expected return, uncorrelated risk, Sharpe).
* :meth:`MetricsEngine.compute_risk_metrics` and friends — descriptive
  statistics over a realised return series (VaR, drawdown, beta, ...).

Only static methods are exposed; there is no shared state.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

import numpy as np
import pandas as pd

from portfolio_core.config import RISK_FREE_RATE, TRADING_DAYS, VAR_CONFIDENCE
from portfolio_core.errors import InvalidInputError
from portfolio_core.models import (
    Asset,
    Correlation,
    PortfolioMetrics,
    RiskContribution,
    RiskMetrics,
)

logger = logging.getLogger(__name__)


def _safe_div(numerator: float, denominator: float) -> float:
    """Ratio for descriptive statistics; an undefined ratio reports 0.0."""
    if abs(denominator) < 1e-15:
        return 0.0
    return float(numerator / denominator)


class MetricsEngine:
    """
    Computes expected return, risk and Sharpe ratio from an allocation, plus
    realised-risk statistics from return series.
    """

    # ------------------------------------------------------------------
    # Allocation → expected figures
    # ------------------------------------------------------------------

    @staticmethod
    def compute_metrics(assets: List[Asset]) -> PortfolioMetrics:
        """
        Expected return, risk and Sharpe ratio for *assets*.

        Formula::

            E[Rp]  = Σ (alloc_i / 100) · r_i
            σp     = sqrt( Σ ((alloc_i / 100) · σ_i)² )   # no covariance terms
            Sharpe = E[Rp] / σp

        The risk figure treats assets as uncorrelated, so it understates true
        portfolio risk whenever holdings move together.

        Raises
        ------
        InvalidInputError
            If *assets* is empty, any volatility is negative, or the
            portfolio risk is zero (Sharpe undefined).
        """
        if not assets:
            raise InvalidInputError("Cannot compute metrics for an empty asset list.")

        weights = np.array([a.allocation for a in assets], dtype=float) / 100.0
        returns = np.array([a.expected_return for a in assets], dtype=float)
        vols    = np.array([a.volatility for a in assets], dtype=float)

        if (vols < 0).any():
            bad = [a.symbol for a in assets if a.volatility < 0]
            raise InvalidInputError(f"Negative volatility for {bad}.")

        expected_return = float(np.dot(weights, returns))
        expected_risk   = float(np.sqrt(np.sum((weights * vols) ** 2)))

        if expected_risk == 0.0:
            logger.warning("Zero portfolio risk for %d assets; Sharpe undefined", len(assets))
            raise InvalidInputError(
                "Portfolio risk is zero (all weighted volatilities are 0); "
                "Sharpe ratio is undefined."
            )

        sharpe = expected_return / expected_risk
        logger.debug(
            "metrics: n=%d return=%.4f risk=%.4f sharpe=%.3f",
            len(assets), expected_return, expected_risk, sharpe,
        )
        return PortfolioMetrics(
            expected_return=expected_return,
            expected_risk=expected_risk,
            sharpe_ratio=sharpe,
        )

    @staticmethod
    def compute_risk_contributions(assets: List[Asset]) -> List[RiskContribution]:
        """
        Each asset's share of the (uncorrelated) portfolio variance.

        ``contribution = ((alloc / 100) · σ)²``; shares sum to 1.
        """
        contributions = [
            ((a.allocation / 100.0) * a.volatility) ** 2 for a in assets
        ]
        total = sum(contributions)
        if total == 0:
            raise InvalidInputError("Portfolio variance is zero; risk shares are undefined.")

        return [
            RiskContribution(symbol=a.symbol, contribution=c, share=c / total)
            for a, c in zip(assets, contributions)
        ]

    # ------------------------------------------------------------------
    # Realised return series
    # ------------------------------------------------------------------

    @staticmethod
    def compute_returns(prices: Sequence[float]) -> List[float]:
        """Simple period-over-period returns for a price series."""
        series = pd.Series(prices, dtype=float)
        if (series <= 0).any():
            raise InvalidInputError("Prices must be positive to compute returns.")
        return [float(r) for r in series.pct_change().dropna()]

    @staticmethod
    def compute_risk_metrics(
        returns: Sequence[float],
        benchmark_returns: Sequence[float],
        risk_free_rate: float = RISK_FREE_RATE,
    ) -> RiskMetrics:
        """
        Descriptive risk statistics for a daily return series.

        All ratios are annualised with ``TRADING_DAYS``.  Volatility uses the
        population standard deviation.  VaR/CVaR are reported as positive
        loss fractions.  A ratio whose denominator is zero is reported as
        ``0.0``.

        Drawdown is measured from the running peak of the compounded index,
        with the starting level ``1.0`` as the first peak.

        Raises
        ------
        InvalidInputError
            If either series has fewer than 2 points, their lengths differ,
            or a return is below ``-1`` (a loss of more than 100%).
        """
        r = pd.Series(returns, dtype=float)
        b = pd.Series(benchmark_returns, dtype=float)

        if len(r) < 2:
            raise InvalidInputError("At least two returns are required.")
        if len(r) != len(b):
            raise InvalidInputError(
                f"Return series length {len(r)} does not match benchmark length {len(b)}."
            )
        if (r < -1).any():
            raise InvalidInputError("A period return below -100% is not a valid return.")

        mean   = float(r.mean())
        b_mean = float(b.mean())
        annual_return    = mean * TRADING_DAYS
        annual_benchmark = b_mean * TRADING_DAYS

        volatility    = float(r.std(ddof=0) * np.sqrt(TRADING_DAYS))
        excess_return = annual_return - risk_free_rate
        sharpe        = _safe_div(excess_return, volatility)

        # Historical VaR / CVaR on the sorted series
        sorted_returns = np.sort(r.to_numpy())
        var_idx = int(np.floor((1 - VAR_CONFIDENCE) * len(sorted_returns)))
        var_95  = -float(sorted_returns[var_idx])
        tail    = sorted_returns[:var_idx]
        cvar_95 = -float(tail.mean()) if len(tail) else var_95

        # Drawdown on the compounded index; the starting level 1.0 counts as
        # a peak, so a total loss reads as a 100% drawdown.
        index        = (1 + r).cumprod()
        running_peak = index.cummax().clip(lower=1.0)
        drawdowns    = (running_peak - index) / running_peak
        max_drawdown = float(drawdowns.max())

        covariance   = float(((r - mean) * (b - b_mean)).mean())
        bench_var    = float(((b - b_mean) ** 2).mean())
        beta         = _safe_div(covariance, bench_var)
        alpha        = annual_return - (risk_free_rate + beta * (annual_benchmark - risk_free_rate))

        tracking_error    = float(np.sqrt(((r - b) ** 2).mean()) * np.sqrt(TRADING_DAYS))
        information_ratio = _safe_div(annual_return - annual_benchmark, tracking_error)
        treynor           = _safe_div(excess_return, beta)
        calmar            = _safe_div(annual_return, max_drawdown)

        return RiskMetrics(
            sharpe_ratio=round(sharpe, 3),
            volatility=round(volatility, 3),
            var_95=round(var_95, 4),
            cvar_95=round(cvar_95, 4),
            max_drawdown=round(max_drawdown, 4),
            beta=round(beta, 3),
            alpha=round(alpha, 3),
            information_ratio=round(information_ratio, 3),
            treynor_ratio=round(treynor, 3),
            calmar_ratio=round(calmar, 3),
        )

    @staticmethod
    def correlation_matrix(returns_by_symbol: Dict[str, Sequence[float]]) -> List[Correlation]:
        """
        Pairwise Pearson correlation for every unordered pair of symbols,
        in input order.  A constant series correlates ``0.0`` with anything.
        """
        symbols = list(returns_by_symbol)
        if len(symbols) < 2:
            return []

        frame  = MetricsEngine._returns_frame(returns_by_symbol)
        matrix = frame.corr().fillna(0.0)

        pairs: List[Correlation] = []
        for i, first in enumerate(symbols):
            for second in symbols[i + 1:]:
                corr = float(matrix.loc[first, second])
                pairs.append(Correlation(asset1=first, asset2=second, correlation=round(corr, 3)))
        return pairs

    @staticmethod
    def covariance_matrix(
        returns_by_symbol: Dict[str, Sequence[float]],
        annualise: bool = True,
    ) -> pd.DataFrame:
        """
        Sample covariance of the return series (symbols on both axes).

        Scaled by ``TRADING_DAYS`` when *annualise* is set, so it can be fed
        straight to :meth:`portfolio_variance` alongside annual volatilities.
        """
        cov = MetricsEngine._returns_frame(returns_by_symbol).cov()
        return cov * TRADING_DAYS if annualise else cov

    @staticmethod
    def _returns_frame(returns_by_symbol: Dict[str, Sequence[float]]) -> pd.DataFrame:
        lengths = {s: len(v) for s, v in returns_by_symbol.items()}
        if len(set(lengths.values())) > 1:
            raise InvalidInputError(f"Return series differ in length: {lengths}.")
        if min(lengths.values(), default=0) < 2:
            raise InvalidInputError("At least two returns are required per symbol.")
        return pd.DataFrame({s: list(v) for s, v in returns_by_symbol.items()}, dtype=float)

    # ------------------------------------------------------------------
    # Covariance-based risk
    # ------------------------------------------------------------------

    @staticmethod
    def portfolio_variance(weights: Sequence[float], covariance) -> float:
        """
        Full-covariance portfolio variance ``wᵀ Σ w``.

        *weights* are fractions in the same order as the rows of
        *covariance* (a square array or DataFrame).
        """
        w, cov = MetricsEngine._check_covariance(weights, covariance)
        return float(w @ cov @ w)

    @staticmethod
    def covariance_risk_contributions(weights: Sequence[float], covariance) -> List[float]:
        """
        Each weight's share of portfolio variance, including cross terms.

        Formula::

            RC_i = w_i · (Σ w)_i / (wᵀ Σ w)        Σ RC_i = 1

        Raises
        ------
        InvalidInputError
            If the shapes disagree or the portfolio variance is not positive.
        """
        w, cov = MetricsEngine._check_covariance(weights, covariance)
        variance = float(w @ cov @ w)
        if variance <= 0:
            raise InvalidInputError("Portfolio variance must be positive for risk contributions.")
        return [float(c) for c in w * (cov @ w) / variance]

    @staticmethod
    def _check_covariance(weights: Sequence[float], covariance):
        w   = np.asarray(weights, dtype=float)
        cov = np.asarray(covariance, dtype=float)
        if w.ndim != 1 or w.size == 0:
            raise InvalidInputError("Weights must be a non-empty 1-D sequence.")
        if cov.shape != (w.size, w.size):
            raise InvalidInputError(
                f"Covariance shape {cov.shape} does not match {w.size} weights."
            )
        if not np.isfinite(cov).all():
            raise InvalidInputError("Covariance matrix contains non-finite values.")
        return w, cov
