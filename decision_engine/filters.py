"""
Betting Line Filters
====================

Edge calculations against posted total and spread lines, and the
threshold filters that turn an edge into a recommendation.
Recommendations never block a prediction; they only grade it.
"""

import json
import logging
from pathlib import Path
from typing import Dict

from advanced_statistics import clamp, round_half_up
from model_config import MatchConfiguration, SpreadDirection

logger = logging.getLogger(__name__)

NO_LINE_SET = 'NO LINE SET'
NO_SPREAD_SET = 'NO SPREAD SET'
NO_CLEAR_EDGE = 'NO CLEAR EDGE'

DEFAULT_FILTER_CONFIG = {
    'total_strong_edge': 7.5,
    'total_moderate_edge': 4.5,
    'spread_strong_edge': 7.0,
    'spread_moderate_edge': 4.0,
    'close_margin': 0.3,
    'edge_class_threshold': 5.0,
    'strong_edge_strength': 10.0,
}


def format_line(value: float) -> str:
    """Shortest numeric form of a line (1.0 -> '1', 2.5 -> '2.5')."""
    return f"{value:g}"


def calculate_over_under_edge(projected_total: float, total_line: float) -> float:
    """
    Percentage gap between the projected total and the total line.

    Returns:
        (total - line) / max(1, line) * 100, or 0 when no line is set
    """
    if total_line <= 0:
        return 0.0
    return ((projected_total - total_line) / max(1, total_line)) * 100


def calculate_spread_edge(projected_margin: float, point_spread: float,
                          spread_direction: SpreadDirection) -> float:
    """
    Percentage gap between the projected margin and the signed spread.

    The spread is positive when team 1 is favored, negative otherwise.

    Returns:
        (margin - signed spread) / max(1, |spread|) * 100, or 0 when no spread is set
    """
    if point_spread <= 0:
        return 0.0
    signed_spread = point_spread if spread_direction == SpreadDirection.TEAM1 else -point_spread
    return ((projected_margin - signed_spread) / max(1, abs(signed_spread))) * 100


class BettingLineFilters:
    """
    Grades betting edges.

    Filters:
    - Over/under thresholds scaled by distance of the line from 2.5
    - Spread thresholds scaled by spread size, skipped for near-even margins
    - Edge class, strength, value stars and estimated win percentage
    """

    def __init__(self, config_file: str = 'decision_engine/filter_config.json'):
        """
        Initialize betting line filters.

        Args:
            config_file: Path to an optional JSON threshold override file
        """
        self.config_file = Path(config_file)
        self.config = self.load_config()

    def load_config(self) -> Dict:
        """Load filter thresholds, keeping defaults for anything not overridden."""
        config = dict(DEFAULT_FILTER_CONFIG)
        if not self.config_file.exists():
            return config

        try:
            with open(self.config_file, 'r') as f:
                overrides = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not read {self.config_file} ({e}), using default thresholds")
            return config

        config.update(overrides)
        logger.info(f"Loaded filter thresholds from {self.config_file}")
        return config

    def over_under_recommendation(self, edge: float, total_line: float) -> str:
        """
        Classify an over/under edge.

        Lines far from 2.5 are less reliable, so thresholds shrink by 10% per
        unit of distance.

        Args:
            edge: Over/under edge in percent
            total_line: Posted total line (0 = unset)

        Returns:
            'STRONG OVER L', 'OVER L', 'STRONG UNDER L', 'UNDER L',
            'NO CLEAR EDGE' or 'NO LINE SET'
        """
        if total_line <= 0:
            return NO_LINE_SET

        line_quality = 1.0 - (abs(total_line - 2.5) * 0.1)
        strong = self.config['total_strong_edge'] * line_quality
        moderate = self.config['total_moderate_edge'] * line_quality
        line = format_line(total_line)

        if edge > strong:
            return f"STRONG OVER {line}"
        elif edge > moderate:
            return f"OVER {line}"
        elif edge < -strong:
            return f"STRONG UNDER {line}"
        elif edge < -moderate:
            return f"UNDER {line}"
        return NO_CLEAR_EDGE

    def spread_recommendation(self, edge: float, projected_margin: float,
                              config: MatchConfiguration) -> str:
        """
        Classify a spread edge.

        Args:
            edge: Spread edge in percent
            projected_margin: Reconciled projected margin
            config: Match configuration (spread, direction, team names)

        Returns:
            'STRONG Fav -S', 'Fav -S', 'STRONG Dog +S', 'Dog +S',
            'NO CLEAR EDGE' or 'NO SPREAD SET'
        """
        if config.point_spread <= 0:
            return NO_SPREAD_SET

        if abs(projected_margin) < self.config['close_margin']:
            return NO_CLEAR_EDGE

        spread_quality = 1.0 - (max(0.0, 3.0 - config.point_spread) * 0.1)
        strong = self.config['spread_strong_edge'] * spread_quality
        moderate = self.config['spread_moderate_edge'] * spread_quality

        spread = format_line(config.point_spread)
        favorite = f"{config.favorite_name()} -{spread}"
        underdog = f"{config.underdog_name()} +{spread}"

        if edge > strong:
            return f"STRONG {favorite}"
        elif edge > moderate:
            return favorite
        elif edge < -strong:
            return f"STRONG {underdog}"
        elif edge < -moderate:
            return underdog
        return NO_CLEAR_EDGE

    def classify_edge(self, edge: float) -> str:
        """'positive', 'negative' or 'neutral'."""
        threshold = self.config['edge_class_threshold']
        if edge > threshold:
            return 'positive'
        elif edge < -threshold:
            return 'negative'
        return 'neutral'

    def edge_strength(self, edge: float) -> str:
        """'Strong', 'Moderate' or 'Weak' by absolute edge."""
        if abs(edge) > self.config['strong_edge_strength']:
            return 'Strong'
        elif abs(edge) > self.config['edge_class_threshold']:
            return 'Moderate'
        return 'Weak'

    @staticmethod
    def value_stars(edge: float) -> int:
        """Value rating from 1 to 5 stars (one star per 3% of edge)."""
        return int(clamp(round_half_up(abs(edge) / 3), 1, 5))

    @staticmethod
    def estimated_win_pct(edge: float) -> float:
        """Rough hit rate: 50% plus 1.5 points per percent of edge, capped at 95%."""
        return clamp(50 + abs(edge) * 1.5, 50, 95)
