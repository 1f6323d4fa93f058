"""
Match Prediction Model - Model V1
=================================
Deterministic scoring model that turns a FeatureSnapshot into:

- Win / draw / loss probabilities (logistic split of an advantage coefficient)
- Projected total and projected margin
- A reconciled margin that agrees with the most likely outcome
- A Poisson score distribution with correlation adjustments
- Alternative scorelines around the projected score

No parameters are trained; every coefficient is hand-tuned.

Author: Football Analytics System
Version: 1.0 - Model V1
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple

from advanced_statistics import clamp, logistic, poisson_probability, round_half_up
from feature_engineering import FeatureSnapshot
from model_config import LEAGUE_AVG_TOTAL, MIN_H2H_MATCHES, WEIGHTS

logger = logging.getLogger(__name__)

MIN_PROBABILITY = 5.0
MARGIN_THRESHOLD = 0.25
MAX_SCORE_IN_GRID = 4
COMMON_SCORELINES = {(1, 0), (0, 1), (1, 1), (2, 1), (1, 2)}


@dataclass(frozen=True)
class WinProbabilities:
    """Outcome probabilities in percent, summing to 100."""
    team1_win: float
    team2_win: float
    draw: float

    def as_dict(self) -> Dict[str, float]:
        return {'team1_win': self.team1_win, 'team2_win': self.team2_win, 'draw': self.draw}

    @property
    def predicted_outcome(self) -> str:
        """
        'team1', 'team2' or 'draw' by highest probability.

        Ties go to team 1, then team 2; draw wins only when strictly highest.
        """
        highest = max(self.team1_win, self.team2_win, self.draw)
        if self.team1_win == highest:
            return 'team1'
        if self.team2_win == highest:
            return 'team2'
        return 'draw'


@dataclass(frozen=True)
class ScoreProbability:
    """One cell of the score distribution (is_other marks the remainder bucket)."""
    team1_score: int
    team2_score: int
    probability: float
    is_other: bool = False

    @property
    def label(self) -> str:
        return 'Other' if self.is_other else f"{self.team1_score}-{self.team2_score}"


@dataclass(frozen=True)
class AlternativeScore:
    team1_score: int
    team2_score: int
    probability: float
    description: str


def normalized_ranking_diff(ranking_diff: int) -> float:
    """Map a ranking difference to [-1, 1]; positive favors team 1 (lower rank is better)."""
    if ranking_diff == 0:
        return 0.0
    return -math.copysign(1, ranking_diff) * min(1.0, abs(ranking_diff) / 20)


def attack_difference(features: FeatureSnapshot) -> float:
    adv = features.advanced_stats
    return ((adv.team1_attack_strength - adv.team2_defense_strength)
            - (adv.team2_attack_strength - adv.team1_defense_strength))


def apply_probability_floor(values: List[float], floor: float = MIN_PROBABILITY) -> List[float]:
    """
    Raise every probability to at least `floor` percent and renormalize to 100.

    A single floor-then-renormalize pass is used when it keeps every value at
    or above the floor. Otherwise the values below the floor are pinned to it
    and the rest of the mass is split among the others in proportion.

    Args:
        values: Positive probabilities in percent
        floor: Minimum share in percent

    Returns:
        Probabilities in the same order, summing to 100
    """
    floored = [max(floor, v) for v in values]
    total = sum(floored)
    result = [(v / total) * 100 for v in floored]
    if min(result) >= floor:
        return result

    pinned = set()
    while True:
        pinned |= {i for i, v in enumerate(result) if v < floor}
        free_mass = sum(floored[i] for i in range(len(floored)) if i not in pinned)
        remaining = 100 - floor * len(pinned)
        result = [floor if i in pinned else (floored[i] / free_mass) * remaining
                  for i in range(len(floored))]
        if all(v >= floor for v in result):
            return result


def calculate_win_probabilities(features: FeatureSnapshot, weights: Optional[Dict[str, float]] = None) -> WinProbabilities:
    """
    Calculate win/draw/loss probabilities.

    The draw share is fixed first from scoring rate and strength gap, then the
    remainder is split between the teams with a logistic curve over the
    clamped advantage coefficient.

    Args:
        features: Feature snapshot for the match
        weights: Factor weights (defaults to model_config.WEIGHTS)

    Returns:
        WinProbabilities, each at least 5%, summing to 100
    """
    weights = weights or WEIGHTS
    basic = features.basic_stats
    adv = features.advanced_stats

    attack_diff = attack_difference(features)

    advantage = (attack_diff * weights['OVERALL_PERFORMANCE']
                 + (adv.team1_recent_form - adv.team2_recent_form) * weights['RECENT_FORM']
                 + basic.h2h_advantage * weights['H2H_MATCHES']
                 + (adv.team1_momentum_index - adv.team2_momentum_index) * weights['MOMENTUM'])

    if basic.location_factor != 0:
        home_team_advantage = adv.team1_home_advantage if basic.location_factor == 1 else adv.team2_home_advantage
        advantage += basic.location_factor * home_team_advantage * weights['HOME_ADVANTAGE']

    if basic.match_importance != 1:
        importance_diff = adv.team1_match_importance_performance - adv.team2_match_importance_performance
        advantage += (basic.match_importance - 1) * importance_diff * weights['MATCH_IMPORTANCE']

    if basic.ranking_diff != 0:
        advantage += normalized_ranking_diff(basic.ranking_diff) * weights['RANKING']

    advantage = clamp(advantage, -3, 3)

    # Draw share: even, low-scoring, defensive, high-stakes matches draw more
    scoring_rate = basic.team1_avg_score + basic.team2_avg_score
    base_draw = 35 - (scoring_rate * 4) - (abs(attack_diff) * 15)
    if adv.team1_defense_strength < 0.8 and adv.team2_defense_strength < 0.8:
        base_draw += 10
    if basic.match_importance > 1.3:
        base_draw += (basic.match_importance - 1.3) * 8
    draw = clamp(base_draw, 5, 45)

    remaining = 100 - draw
    team1 = remaining * logistic(advantage)
    team2 = remaining - team1

    total = team1 + team2 + draw
    team1, team2, draw = (team1 / total) * 100, (team2 / total) * 100, (draw / total) * 100

    if not features.data_quality.data_sufficiency:
        # 30% reversion toward a 40/40/20 prior
        reversion = 0.3
        team1 = team1 * (1 - reversion) + 40 * reversion
        team2 = team2 * (1 - reversion) + 40 * reversion
        draw = draw * (1 - reversion) + 20 * reversion

    team1, team2, draw = apply_probability_floor([team1, team2, draw])
    probabilities = WinProbabilities(team1_win=team1, team2_win=team2, draw=draw)

    logger.debug(f"Advantage coefficient {advantage:.3f}, draw base {base_draw:.2f}")
    return probabilities


def _h2h_weight(h2h_matches: int) -> float:
    return min(0.5, h2h_matches * 0.08)


def calculate_projected_total(features: FeatureSnapshot) -> float:
    """
    Calculate the projected combined score.

    Args:
        features: Feature snapshot for the match

    Returns:
        Projected total, at least 0.5
    """
    basic = features.basic_stats
    adv = features.advanced_stats
    quality = features.data_quality

    total = (basic.team1_avg_score + basic.team2_avg_score
             + basic.team1_avg_conceded + basic.team2_avg_conceded) / 2

    if quality.h2h_matches >= MIN_H2H_MATCHES and basic.h2h_avg_total is not None:
        weight = _h2h_weight(quality.h2h_matches)
        total = total * (1 - weight) + basic.h2h_avg_total * weight

    total += ((adv.team1_recent_form + adv.team2_recent_form) - 1) * 0.5
    total -= ((1 - adv.team1_defense_strength) + (1 - adv.team2_defense_strength)) * 0.5
    total += (adv.team1_attack_strength + adv.team2_attack_strength - 2) * 0.5

    if basic.match_importance < 1:
        total += (1 - basic.match_importance) * 0.6
    elif basic.match_importance > 1.3:
        total -= (basic.match_importance - 1.3) * 0.4

    if basic.location_factor != 0:
        total += abs(basic.location_factor) * 0.15

    # Erratic teams produce more open games
    total += ((1 - adv.team1_consistency) + (1 - adv.team2_consistency)) * 0.4

    total += features.trends.scoring.overall_trend * 0.3

    if not quality.data_sufficiency:
        total = total * 0.6 + LEAGUE_AVG_TOTAL * 0.4

    return max(0.5, total)


def calculate_projected_margin(features: FeatureSnapshot) -> float:
    """
    Calculate the projected margin (team 1 minus team 2).

    Args:
        features: Feature snapshot for the match

    Returns:
        Signed projected margin
    """
    basic = features.basic_stats
    adv = features.advanced_stats
    quality = features.data_quality

    margin = ((basic.team1_avg_score - basic.team2_avg_conceded)
              - (basic.team2_avg_score - basic.team1_avg_conceded))

    if quality.h2h_matches >= MIN_H2H_MATCHES and basic.h2h_avg_margin is not None:
        weight = _h2h_weight(quality.h2h_matches)
        margin = margin * (1 - weight) + basic.h2h_avg_margin * weight
    else:
        margin += basic.h2h_advantage * 0.5

    margin += (adv.team1_recent_form - adv.team2_recent_form) * 0.8
    margin += attack_difference(features) * 0.5
    margin += (adv.team1_momentum_index - adv.team2_momentum_index) * 0.5

    if basic.location_factor != 0:
        margin += basic.location_factor * 0.4

    if basic.ranking_diff != 0:
        margin += normalized_ranking_diff(basic.ranking_diff) * 0.3

    # The stronger side asserts itself in important matches
    if basic.match_importance > 1:
        if margin > 0:
            margin += (basic.match_importance - 1) * 0.3
        elif margin < 0:
            margin -= (basic.match_importance - 1) * 0.3

    if not quality.data_sufficiency:
        margin *= 0.5

    return margin


def ensure_prediction_consistency(probabilities: WinProbabilities, projected_margin: float) -> Tuple[WinProbabilities, float]:
    """
    Make the projected margin agree with the most likely outcome.

    A predicted draw shrinks the margin to 20%. Otherwise, when the margin
    points at a different result (threshold 0.25), it is moved to the side of
    the probability winner with magnitude max(0.25, 0.8 * |margin|).

    Args:
        probabilities: Model probabilities
        projected_margin: Raw projected margin

    Returns:
        Tuple of (probabilities copy, adjusted margin)
    """
    adjusted = replace(probabilities)
    predicted = probabilities.predicted_outcome

    if predicted == 'draw':
        return adjusted, projected_margin * 0.2

    if projected_margin > MARGIN_THRESHOLD:
        margin_winner = 'team1'
    elif projected_margin < -MARGIN_THRESHOLD:
        margin_winner = 'team2'
    else:
        margin_winner = 'draw'

    if predicted == margin_winner:
        return adjusted, projected_margin

    if predicted == 'team1':
        adjusted_margin = max(MARGIN_THRESHOLD, abs(projected_margin) * 0.8)
    else:
        adjusted_margin = min(-MARGIN_THRESHOLD, -abs(projected_margin) * 0.8)

    logger.debug(f"Margin {projected_margin:.3f} reconciled to {adjusted_margin:.3f} ({predicted})")
    return adjusted, adjusted_margin


def team_means(projected_total: float, projected_margin: float) -> Tuple[float, float]:
    """Expected goals per team from total and margin."""
    return projected_total / 2 + projected_margin / 2, projected_total / 2 - projected_margin / 2


def project_scoreline(projected_total: float, projected_margin: float) -> Tuple[int, int]:
    """Rounded projected score (halves round up)."""
    team1_mean, team2_mean = team_means(projected_total, projected_margin)
    return round_half_up(team1_mean), round_half_up(team2_mean)


def _score_adjustment(team1_score: int, team2_score: int, projected_total: float) -> float:
    factor = 1.0
    if team1_score == team2_score:
        factor *= 1.3
    if team1_score == 0 and team2_score == 0 and projected_total < 2.0:
        factor *= 1.7
    if (team1_score >= 3 and team2_score >= 2) or (team1_score >= 2 and team2_score >= 3):
        factor *= 1.2
    if team1_score + team2_score > 6:
        factor *= 0.7
    if (team1_score, team2_score) in COMMON_SCORELINES:
        factor *= 1.15
    return factor


def generate_score_distribution(projected_total: float, projected_margin: float) -> List[ScoreProbability]:
    """
    Generate scoreline probabilities for 0-0 through 4-4.

    Independent Poisson probabilities are corrected for draws, low-scoring
    0-0, correlated high scores, very high totals and common scorelines,
    then normalized to 100%.

    Args:
        projected_total: Projected combined score
        projected_margin: Reconciled projected margin

    Returns:
        Scorelines sorted by probability, highest first. An 'Other' bucket
        is appended only when more than 0.1% is left over.
    """
    team1_mean, team2_mean = team_means(projected_total, projected_margin)

    cells = []
    for team1_score in range(MAX_SCORE_IN_GRID + 1):
        for team2_score in range(MAX_SCORE_IN_GRID + 1):
            probability = (poisson_probability(team1_score, team1_mean)
                           * poisson_probability(team2_score, team2_mean)
                           * _score_adjustment(team1_score, team2_score, projected_total))
            cells.append((team1_score, team2_score, probability * 100))

    total = sum(p for _, _, p in cells)
    distribution = [
        ScoreProbability(t1, t2, (p / total) * 100 if total > 0 else 0.0)
        for t1, t2, p in cells
    ]

    other = max(0.0, 100 - sum(s.probability for s in distribution))
    if other > 0.1:
        distribution.append(ScoreProbability(-1, -1, other, is_other=True))

    distribution.sort(key=lambda s: s.probability, reverse=True)
    return distribution


def generate_alternative_scores(team1_score: int, team2_score: int,
                                projected_total: float, projected_margin: float,
                                team1_name: str = 'Team 1', team2_name: str = 'Team 2',
                                top_n: int = 3) -> List[AlternativeScore]:
    """
    Rank plausible variations of the projected score.

    Plausibility = max(5, 100 - 20 * |total gap| - 30 * |margin gap|).

    Args:
        team1_score: Projected team 1 score
        team2_score: Projected team 2 score
        projected_total: Projected combined score
        projected_margin: Reconciled projected margin
        team1_name: Used in descriptions
        team2_name: Used in descriptions
        top_n: Number of alternatives returned

    Returns:
        Top alternatives, most plausible first
    """
    variants = [
        (team1_score + 1, team2_score, f"More goals for {team1_name}"),
        (team1_score, team2_score + 1, f"More goals for {team2_name}"),
        (team1_score + 1, team2_score + 1, "Higher scoring draw"),
        (max(0, team1_score - 1), team2_score, f"Tighter defense by {team1_name}"),
        (team1_score, max(0, team2_score - 1), f"Tighter defense by {team2_name}"),
        (team1_score + 2, team2_score, f"Strong attack from {team1_name}"),
        (team1_score, team2_score + 2, f"Strong attack from {team2_name}"),
    ]

    alternatives = []
    for alt1, alt2, description in variants:
        total_gap = abs((alt1 + alt2) - projected_total)
        margin_gap = abs((alt1 - alt2) - projected_margin)
        probability = max(5.0, 100 - (total_gap * 20) - (margin_gap * 30))
        alternatives.append(AlternativeScore(alt1, alt2, probability, description))

    alternatives.sort(key=lambda a: a.probability, reverse=True)
    return alternatives[:top_n]
