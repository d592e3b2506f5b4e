"""
portfolio_core/constants.py
---------------------------
Fixed lookup tables shared across engines.

Unlike config.py these are not tuning knobs: the scenario impact matrix,
the symbol → category table and the recommendation texts are reproduced
exactly and changing them changes the simulator's documented behaviour.
"""

from __future__ import annotations

from portfolio_core.enums import AssetCategory, ScenarioType


# ---------------------------------------------------------------------------
# Symbol → asset category
# ---------------------------------------------------------------------------
# Unlisted symbols fall through to AssetCategory.OTHER.

CATEGORY_SYMBOLS: dict[AssetCategory, frozenset] = {
    AssetCategory.STOCKS:             frozenset({"VTI", "VOO", "SPY", "QQQ"}),
    AssetCategory.LONG_BONDS:         frozenset({"TLT", "VGLT"}),
    AssetCategory.INTERMEDIATE_BONDS: frozenset({"IEF", "VGIT"}),
    AssetCategory.GOLD:               frozenset({"GLD", "IAU"}),
    AssetCategory.COMMODITIES:        frozenset({"DJP", "DBC", "GSG"}),
}


# ---------------------------------------------------------------------------
# Scenario × category impact matrix
# ---------------------------------------------------------------------------
# Total six-month fractional change per category.

SCENARIO_IMPACTS: dict[ScenarioType, dict[AssetCategory, float]] = {
    ScenarioType.RECESSION: {            # e.g. 2008 financial crisis
        AssetCategory.STOCKS:             -0.22,
        AssetCategory.LONG_BONDS:          0.08,
        AssetCategory.INTERMEDIATE_BONDS:  0.05,
        AssetCategory.GOLD:                0.12,
        AssetCategory.COMMODITIES:        -0.15,
        AssetCategory.OTHER:              -0.10,
    },
    ScenarioType.INFLATION_SPIKE: {      # e.g. 1970s
        AssetCategory.STOCKS:             -0.10,
        AssetCategory.LONG_BONDS:         -0.15,
        AssetCategory.INTERMEDIATE_BONDS: -0.08,
        AssetCategory.GOLD:                0.18,
        AssetCategory.COMMODITIES:         0.25,
        AssetCategory.OTHER:              -0.05,
    },
    ScenarioType.INTEREST_RATE_HIKE: {   # e.g. 2022 Fed hikes
        AssetCategory.STOCKS:             -0.12,
        AssetCategory.LONG_BONDS:         -0.18,
        AssetCategory.INTERMEDIATE_BONDS: -0.10,
        AssetCategory.GOLD:                0.05,
        AssetCategory.COMMODITIES:        -0.05,
        AssetCategory.OTHER:              -0.08,
    },
    ScenarioType.BULL_MARKET: {          # e.g. late 2010s
        AssetCategory.STOCKS:              0.25,
        AssetCategory.LONG_BONDS:         -0.05,
        AssetCategory.INTERMEDIATE_BONDS: -0.02,
        AssetCategory.GOLD:               -0.03,
        AssetCategory.COMMODITIES:         0.10,
        AssetCategory.OTHER:               0.15,
    },
    ScenarioType.WAR_ENERGY_CRISIS: {    # e.g. 1973 oil crisis
        AssetCategory.STOCKS:             -0.18,
        AssetCategory.LONG_BONDS:          0.05,
        AssetCategory.INTERMEDIATE_BONDS:  0.02,
        AssetCategory.GOLD:                0.20,
        AssetCategory.COMMODITIES:         0.45,
        AssetCategory.OTHER:              -0.12,
    },
}


# ---------------------------------------------------------------------------
# Scenario recommendation text
# ---------------------------------------------------------------------------
# Static per scenario; not derived from the simulated numbers.

SCENARIO_RECOMMENDATIONS: dict[ScenarioType, str] = {
    ScenarioType.RECESSION: (
        "Portfolio shows resilience, but consider increasing defensive assets "
        "like gold and long-term bonds to further hedge against a prolonged "
        "downturn. Reduce exposure to cyclical stocks."
    ),
    ScenarioType.INFLATION_SPIKE: (
        "Commodities and gold are performing well as expected. Consider "
        "trimming some profits and reallocating to inflation-protected "
        "securities (TIPS) if not already held. Be cautious with bonds."
    ),
    ScenarioType.INTEREST_RATE_HIKE: (
        "Bonds and growth-oriented stocks are under pressure. This is a good "
        "time to review for quality companies with strong balance sheets. "
        "Value stocks may outperform."
    ),
    ScenarioType.BULL_MARKET: (
        "The portfolio is capturing market growth well. Ensure you're not "
        "overly concentrated in a few high-flying stocks. Stick to your "
        "target allocation and rebalance if necessary."
    ),
    ScenarioType.WAR_ENERGY_CRISIS: (
        "Energy and commodities are driving performance. This highlights the "
        "importance of diversification. Monitor geopolitical risks closely "
        "and consider hedges like gold."
    ),
}


# ---------------------------------------------------------------------------
# Optimizer advisory text
# ---------------------------------------------------------------------------

SUGGEST_REDUCE_RISK: str = "Consider reducing allocation to high-volatility assets"
SUGGEST_HIGHER_RETURN: str = "Portfolio could benefit from higher-return assets"
SUGGEST_CONSOLIDATE: str = "Consider consolidating to fewer assets for better management"
