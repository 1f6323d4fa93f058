"""
Betting Signal Generator
========================

Combines the projected total and margin with the configured lines to
produce per-market signals and a best bet.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from model_config import MatchConfiguration

from .filters import (
    BettingLineFilters,
    calculate_over_under_edge,
    calculate_spread_edge,
    format_line,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarketSignal:
    """Recommendation and presentation data for one betting market."""
    market: str  # 'total' or 'spread'
    line_set: bool
    line_label: str
    edge: float
    recommendation: str
    edge_class: str = 'neutral'
    edge_strength: str = ''
    value_stars: int = 0
    win_pct: float = 0.0


@dataclass(frozen=True)
class BestBet:
    market: str
    recommendation: str
    edge_class: str
    confidence: float


@dataclass(frozen=True)
class BettingAnalysis:
    over_under: MarketSignal
    spread: MarketSignal
    best_bet: Optional[BestBet] = None

    @property
    def over_under_edge(self) -> float:
        return self.over_under.edge

    @property
    def spread_edge(self) -> float:
        return self.spread.edge


class BettingSignalGenerator:
    """
    Generates betting signals from projections.

    Output per market: edge, recommendation, edge class and strength,
    value stars and an estimated win percentage. Markets without a line
    carry a neutral signal.
    """

    def __init__(self, filters: BettingLineFilters = None):
        """
        Initialize signal generator.

        Args:
            filters: BettingLineFilters instance (creates new if None)
        """
        self.filters = filters if filters else BettingLineFilters()

    def _market_signal(self, market: str, line_set: bool, line_label: str,
                       edge: float, recommendation: str) -> MarketSignal:
        if not line_set:
            return MarketSignal(market, False, line_label, edge, recommendation)
        return MarketSignal(
            market=market,
            line_set=True,
            line_label=line_label,
            edge=edge,
            recommendation=recommendation,
            edge_class=self.filters.classify_edge(edge),
            edge_strength=self.filters.edge_strength(edge),
            value_stars=self.filters.value_stars(edge),
            win_pct=self.filters.estimated_win_pct(edge),
        )

    def generate_signal(self, projected_total: float, projected_margin: float,
                        config: MatchConfiguration) -> BettingAnalysis:
        """
        Generate signals for the total and spread markets.

        Args:
            projected_total: Projected combined score
            projected_margin: Reconciled projected margin
            config: Match configuration with the betting lines

        Returns:
            BettingAnalysis; best_bet is None when no line is set
        """
        total_edge = calculate_over_under_edge(projected_total, config.total_line)
        spread_edge = calculate_spread_edge(projected_margin, config.point_spread, config.spread_direction)

        total_label = format_line(config.total_line) if config.has_total_line else ''
        spread_label = ''
        if config.has_point_spread:
            spread = format_line(config.point_spread)
            spread_label = f"{config.favorite_name()} -{spread} / {config.underdog_name()} +{spread}"

        over_under = self._market_signal(
            'total', config.has_total_line, total_label, total_edge,
            self.filters.over_under_recommendation(total_edge, config.total_line),
        )
        spread_signal = self._market_signal(
            'spread', config.has_point_spread, spread_label, spread_edge,
            self.filters.spread_recommendation(spread_edge, projected_margin, config),
        )

        best_bet = None
        if over_under.line_set or spread_signal.line_set:
            if not spread_signal.line_set:
                best = over_under
            elif not over_under.line_set:
                best = spread_signal
            else:
                best = over_under if abs(total_edge) > abs(spread_edge) else spread_signal
            best_bet = BestBet(
                market=best.market,
                recommendation=best.recommendation,
                edge_class=best.edge_class,
                confidence=max(over_under.win_pct, spread_signal.win_pct),
            )

        logger.debug(f"Edges: total {total_edge:.1f}%, spread {spread_edge:.1f}%")
        return BettingAnalysis(over_under=over_under, spread=spread_signal, best_bet=best_bet)
