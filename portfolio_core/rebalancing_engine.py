"""
portfolio_core/rebalancing_engine.py
------------------------------------
Diff a current allocation against a target and describe the trades.

Assets are matched by ``symbol``.  A symbol present on only one side is
ignored: it produces no action.
"""

from __future__ import annotations

import logging
from typing import List

from portfolio_core.config import REBALANCE_THRESHOLD
from portfolio_core.models import Asset, RebalanceAction

logger = logging.getLogger(__name__)


class RebalancingEngine:

    @staticmethod
    def compute_actions(
        current: List[Asset],
        target: List[Asset],
        threshold: float = REBALANCE_THRESHOLD,
    ) -> List[RebalanceAction]:
        """
        Structured drift list in *current*'s order.

        An action is emitted when ``|current - target| > threshold``
        (percentage points, strict).
        """
        targets = {}
        for a in target:
            targets.setdefault(a.symbol, a)   # first match wins
        actions: List[RebalanceAction] = []

        for holding in current:
            goal = targets.get(holding.symbol)
            if goal is None:
                continue
            diff = abs(holding.allocation - goal.allocation)
            if diff > threshold:
                action = "reduce" if holding.allocation > goal.allocation else "increase"
                actions.append(RebalanceAction(holding.symbol, action, diff))

        logger.debug("rebalance: %d of %d holdings drifted", len(actions), len(current))
        return actions

    @staticmethod
    def suggest_rebalancing(
        current: List[Asset],
        target: List[Asset],
        threshold: float = REBALANCE_THRESHOLD,
    ) -> List[str]:
        """``["reduce AAPL by 10.0%", ...]`` for every above-threshold drift."""
        return [a.describe() for a in RebalancingEngine.compute_actions(current, target, threshold)]
