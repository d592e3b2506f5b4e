"""
portfolio_core/scenario_engine.py
---------------------------------
Apply a macro scenario's six-month shocks to a portfolio snapshot.

Pipeline::

    holding symbol
        → asset category (static lookup, default "other")
        → scenario impact (fixed 5×6 matrix)
        → final value = initial value · (1 + impact)
        → portfolio total, implied monthly rate, 7-point trajectory
        → per-asset performance ranked best first

The recommendation text is a fixed per-scenario lookup; it does not look at
the simulated numbers.
"""

from __future__ import annotations

import logging
from typing import List, Union

from portfolio_core.config import TRAJECTORY_MONTHS
from portfolio_core.constants import (
    CATEGORY_SYMBOLS,
    SCENARIO_IMPACTS,
    SCENARIO_RECOMMENDATIONS,
)
from portfolio_core.enums import AssetCategory, ScenarioType
from portfolio_core.errors import InvalidInputError, UnknownCategoryError
from portfolio_core.models import (
    AllocationValue,
    AssetPerformance,
    PortfolioSnapshot,
    ScenarioResult,
    TrajectoryPoint,
)

logger = logging.getLogger(__name__)


class ScenarioEngine:
    """Deterministic scenario simulator; all methods are static."""

    # ------------------------------------------------------------------ #
    #  Public API
    # ------------------------------------------------------------------ #

    @staticmethod
    def run_scenario(
        portfolio: PortfolioSnapshot,
        scenario_type: Union[ScenarioType, str],
    ) -> ScenarioResult:
        """
        Simulate *scenario_type* against *portfolio*.

        Each holding's currency value is ``allocation / 100 · total_value``.
        ``percent_change`` is a fraction (``-0.084`` == -8.4%), while each
        ``AssetPerformance.change`` is in percent.

        Raises
        ------
        UnknownCategoryError
            Unknown scenario name.
        InvalidInputError
            Empty portfolio, non-positive ``total_value`` or a negative
            holding allocation.
        """
        scenario = ScenarioEngine.resolve_scenario(scenario_type)

        if not portfolio.assets:
            raise InvalidInputError("Cannot run a scenario on a portfolio with no assets.")
        if portfolio.total_value <= 0:
            raise InvalidInputError(
                f"Portfolio total_value must be positive (got {portfolio.total_value})."
            )
        negative = [a.symbol for a in portfolio.assets if a.allocation < 0]
        if negative:
            raise InvalidInputError(
                f"Negative allocation for {negative}; short positions are not simulated."
            )

        impacts = SCENARIO_IMPACTS[scenario]
        initial_value = float(portfolio.total_value)

        before: List[AllocationValue] = []
        after: List[AllocationValue] = []
        performance: List[AssetPerformance] = []

        for asset in portfolio.assets:
            category = ScenarioEngine.asset_category(asset.symbol)
            impact = impacts[category]
            start = asset.allocation / 100.0 * initial_value
            end = start * (1 + impact)

            before.append(AllocationValue(name=asset.symbol, value=start))
            after.append(AllocationValue(name=asset.symbol, value=end))
            performance.append(AssetPerformance(
                symbol=asset.symbol,
                name=asset.name,
                category=category,
                change=impact * 100,
                final_value=end,
            ))

        final_value = sum(a.value for a in after)
        value_change = final_value - initial_value
        percent_change = value_change / initial_value

        monthly_rate = ScenarioEngine.monthly_rate(percent_change)
        trajectory = ScenarioEngine.generate_trajectory(initial_value, monthly_rate)

        # Stable sort: ties keep portfolio order
        performance.sort(key=lambda p: p.change, reverse=True)

        logger.debug(
            "scenario %s: %.2f → %.2f (%.2f%%)",
            scenario.value, initial_value, final_value, percent_change * 100,
        )

        return ScenarioResult(
            scenario=scenario,
            initial_value=initial_value,
            final_value=final_value,
            value_change=value_change,
            percent_change=percent_change,
            before_allocation=before,
            after_allocation=after,
            portfolio_trajectory=trajectory,
            asset_performance=performance,
            recommendation=SCENARIO_RECOMMENDATIONS[scenario],
        )

    @staticmethod
    def compare_scenarios(portfolio: PortfolioSnapshot) -> List[ScenarioResult]:
        """Run every scenario; best ``percent_change`` first."""
        results = [ScenarioEngine.run_scenario(portfolio, s) for s in ScenarioType]
        results.sort(key=lambda r: r.percent_change, reverse=True)
        return results

    @staticmethod
    def asset_category(symbol: str) -> AssetCategory:
        """Case-insensitive symbol lookup; unknown symbols are ``OTHER``."""
        upper = symbol.upper()
        for category, symbols in CATEGORY_SYMBOLS.items():
            if upper in symbols:
                return category
        return AssetCategory.OTHER

    @staticmethod
    def monthly_rate(total_change: float, months: int = TRAJECTORY_MONTHS) -> float:
        """
        Constant monthly rate that compounds to *total_change* over *months*:
        ``(1 + total)^(1/months) − 1``.

        A total loss (``-1``) maps to ``-1``, so the path ends at zero like
        the final value.  Anything below ``-1`` has no real root and raises
        :class:`InvalidInputError`.
        """
        if total_change < -1:
            raise InvalidInputError(
                f"Total change {total_change} is a loss of more than 100%; "
                "no monthly path reaches it."
            )
        if total_change == -1:
            return -1.0
        return (1 + total_change) ** (1 / months) - 1

    @staticmethod
    def generate_trajectory(
        start_value: float,
        monthly_rate: float,
        months: int = TRAJECTORY_MONTHS,
    ) -> List[TrajectoryPoint]:
        """``Start`` plus ``Month 1`` … ``Month N`` compounding from *start_value*."""
        points = [TrajectoryPoint(label="Start", value=start_value)]
        value = start_value
        for month in range(1, months + 1):
            value *= (1 + monthly_rate)
            points.append(TrajectoryPoint(label=f"Month {month}", value=value))
        return points

    @staticmethod
    def resolve_scenario(scenario_type: Union[ScenarioType, str]) -> ScenarioType:
        if isinstance(scenario_type, ScenarioType):
            return scenario_type
        try:
            return ScenarioType(str(scenario_type).upper())
        except ValueError as exc:
            valid = [s.value for s in ScenarioType]
            raise UnknownCategoryError(
                f"Unknown scenario: {scenario_type!r}. Valid options: {valid}"
            ) from exc
