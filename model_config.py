"""
Model V1 Configuration
======================
Match setup values and the hand-tuned constants of the Model V1 formula.

The weights can be overridden from an optional ``model_config.json`` file;
every other constant is fixed.
"""

import copy
import json
import logging
import math
import numbers
import os
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict

from exceptions import ValidationError

logger = logging.getLogger(__name__)


# Data sufficiency thresholds
MIN_MATCHES_FOR_GOOD_ANALYSIS = 4
MIN_MATCHES_FOR_EXCELLENT_ANALYSIS = 8
MIN_H2H_MATCHES = 2

# League baselines used for normalization and regression to the mean
LEAGUE_AVG_SCORED = 1.3
LEAGUE_AVG_TOTAL = 2.5
DEFAULT_TEAM_AVERAGE = 1.5

# Weighting factors for the advantage coefficient
WEIGHTS = {
    'RECENT_FORM': 2.8,
    'H2H_MATCHES': 2.5,
    'OVERALL_PERFORMANCE': 2.2,
    'HOME_ADVANTAGE': 1.6,
    'RANKING': 1.2,
    'MATCH_IMPORTANCE': 1.5,
    'SCORING_TREND': 1.4,
    'DEFENSIVE_TREND': 1.6,
    'MOMENTUM': 2.0,
    'CONSISTENCY': 1.5,
}

DEFAULT_CONFIG_PATH = 'model_config.json'


class MatchLocation(str, Enum):
    """Venue, always relative to team 1."""
    HOME = 'home'
    AWAY = 'away'
    NEUTRAL = 'neutral'


class SpreadDirection(str, Enum):
    """Which team the point spread favors."""
    TEAM1 = 'team1'
    TEAM2 = 'team2'


@dataclass(frozen=True)
class MatchConfiguration:
    """Team setup and betting lines for the match being analyzed."""
    team1_name: str = 'Team 1'
    team2_name: str = 'Team 2'
    team1_ranking: int = 0  # 0 = unranked / unknown
    team2_ranking: int = 0
    match_importance: float = 1.0  # <1 friendly, >1 high stakes
    match_location: MatchLocation = MatchLocation.NEUTRAL
    total_line: float = 0.0  # 0 = unset
    point_spread: float = 0.0  # 0 = unset
    spread_direction: SpreadDirection = SpreadDirection.TEAM1

    def __post_init__(self):
        self.validate()

    @property
    def location_factor(self) -> int:
        """+1 when team 1 is at home, -1 when away, 0 on neutral ground."""
        if self.match_location == MatchLocation.HOME:
            return 1
        if self.match_location == MatchLocation.AWAY:
            return -1
        return 0

    @property
    def ranking_diff(self) -> int:
        """team1_ranking - team2_ranking, or 0 unless both rankings are known."""
        if self.team1_ranking and self.team2_ranking:
            return self.team1_ranking - self.team2_ranking
        return 0

    @property
    def has_total_line(self) -> bool:
        return self.total_line > 0

    @property
    def has_point_spread(self) -> bool:
        return self.point_spread > 0

    def favorite_name(self) -> str:
        if self.spread_direction == SpreadDirection.TEAM1:
            return self.team1_name
        return self.team2_name

    def underdog_name(self) -> str:
        if self.spread_direction == SpreadDirection.TEAM1:
            return self.team2_name
        return self.team1_name

    def validate(self):
        """
        Check field values, coercing enum fields given as plain strings.

        Raises:
            ValidationError: On a wrongly typed field, an unknown
                location/direction, a negative line or ranking, or a
                non-positive match importance.
        """
        try:
            object.__setattr__(self, 'match_location', MatchLocation(self.match_location))
        except ValueError:
            raise ValidationError(
                f"Unknown match location: {self.match_location!r}", field='match_location'
            )
        try:
            object.__setattr__(self, 'spread_direction', SpreadDirection(self.spread_direction))
        except ValueError:
            raise ValidationError(
                f"Unknown spread direction: {self.spread_direction!r}", field='spread_direction'
            )

        for field_name in ('team1_name', 'team2_name'):
            if not isinstance(getattr(self, field_name), str):
                raise ValidationError(f"{field_name} must be text", field=field_name)

        for field_name in ('team1_ranking', 'team2_ranking'):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral):
                raise ValidationError(f"{field_name} must be a whole number", field=field_name)
            if value < 0:
                raise ValidationError(f"{field_name} must be non-negative", field=field_name)

        for field_name in ('total_line', 'point_spread', 'match_importance'):
            value = getattr(self, field_name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real) or math.isnan(value):
                raise ValidationError(f"{field_name} must be a number", field=field_name)
        for field_name in ('total_line', 'point_spread'):
            if getattr(self, field_name) < 0:
                raise ValidationError(f"{field_name} must be non-negative", field=field_name)
        if self.match_importance <= 0:
            raise ValidationError("match_importance must be positive", field='match_importance')

    def validate_team_names(self):
        """
        Team names must be non-empty and distinct before analysis.

        Raises:
            ValidationError: If a name is blank or both names are the same.
        """
        if not self.team1_name.strip() or not self.team2_name.strip():
            raise ValidationError("Please enter names for both teams", field='team_names')
        if self.team1_name.strip() == self.team2_name.strip():
            raise ValidationError("Team names must be different", field='team_names')

    def updated(self, **fields) -> 'MatchConfiguration':
        """Return a validated copy with the given fields replaced."""
        unknown = set(fields) - set(self.__dataclass_fields__)
        if unknown:
            raise ValidationError(f"Unknown configuration fields: {sorted(unknown)}")
        return replace(self, **fields)


def load_model_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict:
    """
    Load model parameters, falling back to the built-in defaults.

    Args:
        config_path: Path to an optional JSON file of the form
            ``{"weights": {"RECENT_FORM": 2.8, ...}}``

    Returns:
        Dictionary with a complete 'weights' mapping
    """
    config = {'weights': copy.deepcopy(WEIGHTS)}

    if not os.path.exists(config_path):
        logger.debug(f"No model config at {config_path}, using default weights")
        return config

    try:
        with open(config_path, 'r') as f:
            overrides = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Could not read {config_path} ({e}), using default weights")
        return config

    for name, value in overrides.get('weights', {}).items():
        if name not in WEIGHTS:
            logger.warning(f"Ignoring unknown weight '{name}' in {config_path}")
            continue
        config['weights'][name] = float(value)

    logger.info(f"Loaded model weights from {config_path}")
    return config
