"""
portfolio_core/allocation_engine.py
-----------------------------------
Pure transformation engine: raw per-asset allocations → constrained,
normalised allocations plus headline metrics and advice.

Design contract:
  - No data fetching, no persistence
  - Metrics delegated to MetricsEngine
  - Never mutates the caller's Asset objects
  - Fully deterministic and stateless (all methods are @staticmethod)
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional

import numpy as np

from portfolio_core.config import (
    ALLOCATION_TOLERANCE,
    HIGH_RISK_THRESHOLD,
    LOW_SHARPE_THRESHOLD,
    MAX_ASSETS_BEFORE_CONSOLIDATION,
    OPTIMAL_MAX_RISK,
    OPTIMAL_SHARPE,
    RISK_PARITY_ITERATIONS,
)
from portfolio_core.constants import (
    SUGGEST_CONSOLIDATE,
    SUGGEST_HIGHER_RETURN,
    SUGGEST_REDUCE_RISK,
)
from portfolio_core.errors import InvalidInputError
from portfolio_core.metrics_engine import MetricsEngine
from portfolio_core.models import (
    Asset,
    CapitalAllocation,
    OptimizationConstraints,
    OptimizationResult,
    PortfolioMetrics,
)

logger = logging.getLogger(__name__)


class AllocationEngine:
    """
    Clamp and renormalise a set of allocation percentages.

    Bounds resolution (see :meth:`Asset.bounds`): an asset's own
    ``min_allocation`` / ``max_allocation`` win when set, otherwise the
    global constraint values apply.

    After clamping, allocations are rescaled to sum to exactly 100.  The
    rescale is proportional, so an individual value can end up outside the
    bound it was clamped to (e.g. two assets clamped to 30 each become
    50/50).  Only the pre-scaling values are guaranteed to respect bounds.
    """

    # ------------------------------------------------------------------ #
    #  Public entry point
    # ------------------------------------------------------------------ #

    @staticmethod
    def optimize_portfolio(
        assets: List[Asset],
        constraints: Optional[OptimizationConstraints] = None,
    ) -> OptimizationResult:
        """
        Clamp → renormalise → compute metrics → advise.

        Parameters
        ----------
        assets:
            Holdings with ``allocation`` in percentage points.
        constraints:
            Global bounds; defaults to ``OptimizationConstraints()``
            (0-100, no target return / risk limit).

        Returns
        -------
        OptimizationResult
            Fresh asset copies whose allocations sum to 100, the portfolio
            metrics, ``is_optimal`` and the advisory strings.

        Raises
        ------
        InvalidInputError
            Empty asset list, zero total after clamping, or zero portfolio
            risk.
        """
        if not assets:
            raise InvalidInputError("Cannot optimize an empty asset list.")

        constraints = constraints or OptimizationConstraints()

        clamped = AllocationEngine._apply_bounds(assets, constraints)
        normalized = AllocationEngine._normalize(clamped)

        metrics = MetricsEngine.compute_metrics(normalized)
        suggestions = AllocationEngine._suggestions(normalized, metrics, constraints)
        is_optimal = (
            metrics.sharpe_ratio > OPTIMAL_SHARPE
            and metrics.expected_risk < OPTIMAL_MAX_RISK
        )

        logger.debug(
            "optimize: n=%d sharpe=%.3f risk=%.4f optimal=%s suggestions=%d",
            len(normalized), metrics.sharpe_ratio, metrics.expected_risk,
            is_optimal, len(suggestions),
        )

        return OptimizationResult(
            assets=normalized,
            expected_return=metrics.expected_return,
            expected_risk=metrics.expected_risk,
            sharpe_ratio=metrics.sharpe_ratio,
            is_optimal=is_optimal,
            suggestions=suggestions,
        )

    @staticmethod
    def risk_parity(
        assets: List[Asset],
        covariance,
        iterations: int = RISK_PARITY_ITERATIONS,
    ) -> List[Asset]:
        """
        Allocations that give every asset an equal share of portfolio risk.

        Starts from equal weights and repeats *iterations* times::

            w_i ← w_i · sqrt( (1/n) / RC_i )
            w   ← w / Σ w

        where ``RC_i`` comes from
        :meth:`MetricsEngine.covariance_risk_contributions`.  *covariance*
        is an ``n × n`` array (or DataFrame) in the same order as *assets*.

        Returns
        -------
        list[Asset]
            Copies of *assets* with ``allocation`` in percentage points
            summing to 100.  The inputs' own allocations are ignored.

        Raises
        ------
        InvalidInputError
            Empty asset list, mismatched covariance, or a non-positive risk
            contribution (e.g. a zero-variance asset).
        """
        if not assets:
            raise InvalidInputError("Cannot run risk parity on an empty asset list.")
        if iterations < 1:
            raise InvalidInputError("Risk parity needs at least one iteration.")

        n = len(assets)
        weights = np.full(n, 1.0 / n)
        for _ in range(iterations):
            contributions = np.asarray(
                MetricsEngine.covariance_risk_contributions(weights, covariance)
            )
            if (contributions <= 0).any():
                bad = [a.symbol for a, c in zip(assets, contributions) if c <= 0]
                raise InvalidInputError(f"Non-positive risk contribution for {bad}.")
            weights = weights * np.sqrt((1.0 / n) / contributions)
            weights = weights / weights.sum()

        logger.debug("risk parity: n=%d weights=%s", n, np.round(weights, 4).tolist())
        return [replace(a, allocation=float(w * 100.0)) for a, w in zip(assets, weights)]

    @staticmethod
    def clamp_allocation(value: float, lower: float, upper: float) -> float:
        """Clamp *value* into ``[lower, upper]``."""
        if lower > upper:
            raise InvalidInputError(f"Lower bound {lower} exceeds upper bound {upper}.")
        return max(lower, min(upper, value))

    @staticmethod
    def allocate_capital(assets: List[Asset], total_capital: float) -> List[CapitalAllocation]:
        """
        Currency amount per asset for *total_capital*.

        Uses **remainder absorption**: every asset but the last is rounded
        to 2 dp and the last receives ``total_capital - sum_of_rest``, so
        the amounts always sum exactly to *total_capital*.
        """
        if not assets:
            return []
        if total_capital < 0:
            raise InvalidInputError("total_capital must not be negative.")

        alloc_total = sum(a.allocation for a in assets)
        if abs(alloc_total - 100.0) > ALLOCATION_TOLERANCE:
            raise InvalidInputError(
                f"Allocations must sum to 100 before distributing capital "
                f"(got {alloc_total}). Run AllocationEngine.optimize_portfolio() first."
            )

        result: List[CapitalAllocation] = []
        distributed = 0.0
        for a in assets[:-1]:
            amount = round(total_capital * a.allocation / 100.0, 2)
            result.append(CapitalAllocation(a.symbol, a.allocation, amount))
            distributed += amount

        last = assets[-1]
        result.append(
            CapitalAllocation(last.symbol, last.allocation, round(total_capital - distributed, 2))
        )
        return result

    # ------------------------------------------------------------------ #
    #  Private helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _apply_bounds(
        assets: List[Asset],
        constraints: OptimizationConstraints,
    ) -> List[Asset]:
        clamped = []
        for asset in assets:
            lower, upper = asset.bounds(constraints)
            clamped.append(
                replace(asset, allocation=AllocationEngine.clamp_allocation(asset.allocation, lower, upper))
            )
        return clamped

    @staticmethod
    def _normalize(assets: List[Asset]) -> List[Asset]:
        """Scale allocations so they sum to 100."""
        total = sum(a.allocation for a in assets)
        if total <= 0:
            logger.warning("All %d allocations clamped to zero; cannot normalise", len(assets))
            raise InvalidInputError(
                "Total allocation is zero after applying constraints; "
                "cannot normalise to 100%."
            )
        if total == 100:
            return assets
        scale = 100.0 / total
        return [replace(a, allocation=a.allocation * scale) for a in assets]

    @staticmethod
    def _suggestions(
        assets: List[Asset],
        metrics: PortfolioMetrics,
        constraints: OptimizationConstraints,
    ) -> List[str]:
        """
        Independent advisory checks in fixed order: risk, Sharpe, count,
        then the optional caller-supplied limits.
        """
        suggestions: List[str] = []

        if metrics.expected_risk > HIGH_RISK_THRESHOLD:
            suggestions.append(SUGGEST_REDUCE_RISK)
        if metrics.sharpe_ratio < LOW_SHARPE_THRESHOLD:
            suggestions.append(SUGGEST_HIGHER_RETURN)
        if len(assets) > MAX_ASSETS_BEFORE_CONSOLIDATION:
            suggestions.append(SUGGEST_CONSOLIDATE)

        if len(assets) > constraints.max_assets:
            suggestions.append(
                f"Portfolio holds {len(assets)} assets, above the configured "
                f"maximum of {constraints.max_assets}"
            )
        if constraints.target_return is not None and metrics.expected_return < constraints.target_return:
            suggestions.append(
                f"Expected return {metrics.expected_return * 100:.1f}% is below "
                f"the target of {constraints.target_return * 100:.1f}%"
            )
        if constraints.max_risk is not None and metrics.expected_risk > constraints.max_risk:
            suggestions.append(
                f"Expected risk {metrics.expected_risk * 100:.1f}% exceeds "
                f"the limit of {constraints.max_risk * 100:.1f}%"
            )

        return suggestions
