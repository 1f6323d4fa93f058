"""
Feature Engineering Module for Match Analysis
=============================================
Statistical indicators derived from the three match series:

- Scoring and conceding averages
- Attack / defense strength relative to opposition quality
- Recent form with recency bias
- Consistency, momentum and home advantage
- Performance under match importance
- Scoring trends, clean sheets and head-to-head advantage
- Per-match performance index series

Every extractor is a pure function of a MatchDataSnapshot and returns a
neutral default when there is not enough data.

Author: Football Analytics System
Version: 1.0 - Model V1
"""

import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from advanced_statistics import (
    calculate_coefficient_of_variation,
    clamp,
    mean_or_default,
    recency_weighted_average,
    result_change_rate,
)
from match_records import (
    MatchCategory,
    MatchDataSnapshot,
    MatchOutcome,
    MatchRecord,
    sort_by_recency,
)
from model_config import (
    DEFAULT_TEAM_AVERAGE,
    LEAGUE_AVG_SCORED,
    LEAGUE_AVG_TOTAL,
    MIN_H2H_MATCHES,
    MIN_MATCHES_FOR_EXCELLENT_ANALYSIS,
    MIN_MATCHES_FOR_GOOD_ANALYSIS,
    MatchConfiguration,
    SpreadDirection,
)

logger = logging.getLogger(__name__)

RECENT_FORM_WINDOW = 5
MOMENTUM_WINDOW = 3
TREND_WINDOW = 5


@dataclass(frozen=True)
class ScoringTrends:
    """Recent minus historical scoring, overall and per team."""
    team1_trend: float = 0.0
    team2_trend: float = 0.0
    overall_trend: float = 0.0


@dataclass(frozen=True)
class CleanSheetStats:
    """Clean sheet counts and recency-weighted percentages."""
    team1_clean_sheet_pct: float
    team2_clean_sheet_pct: float
    team1_clean_sheets: int
    team2_clean_sheets: int
    team1_matches: int
    team2_matches: int


@dataclass(frozen=True)
class PerformanceTrend:
    """Performance index (0-100) per match, oldest first."""
    labels: List[str]
    data: List[float]


@dataclass(frozen=True)
class BasicStats:
    team1_avg_score: float
    team2_avg_score: float
    team1_avg_conceded: float
    team2_avg_conceded: float
    h2h_advantage: float
    location_factor: int  # +1 team 1 home, -1 team 1 away, 0 neutral
    ranking_diff: int
    match_importance: float
    total_line: float
    point_spread: float
    spread_direction: int  # +1 team 1 favored, -1 team 2 favored
    h2h_avg_total: Optional[float] = None
    h2h_avg_margin: Optional[float] = None


@dataclass(frozen=True)
class AdvancedStats:
    team1_recent_form: float
    team2_recent_form: float
    team1_defense_strength: float
    team2_defense_strength: float
    team1_attack_strength: float
    team2_attack_strength: float
    team1_consistency: float
    team2_consistency: float
    team1_momentum_index: float
    team2_momentum_index: float
    team1_home_advantage: float
    team2_home_advantage: float
    team1_match_importance_performance: float
    team2_match_importance_performance: float


@dataclass(frozen=True)
class Trends:
    scoring: ScoringTrends
    clean_sheets: CleanSheetStats


@dataclass(frozen=True)
class DataQuality:
    total_matches: int
    team1_matches: int
    team2_matches: int
    h2h_matches: int
    data_sufficiency: bool
    data_excellence: bool

    @property
    def level(self) -> str:
        """'excellent', 'good' or 'insufficient'."""
        if self.data_excellence:
            return 'excellent'
        if self.data_sufficiency:
            return 'good'
        return 'insufficient'

    @property
    def matches_needed(self) -> int:
        """Matches still missing for good quality."""
        return max(0, MIN_MATCHES_FOR_GOOD_ANALYSIS - self.total_matches)


@dataclass(frozen=True)
class FeatureSnapshot:
    """Every indicator used by Model V1 for one analysis run."""
    basic_stats: BasicStats
    advanced_stats: AdvancedStats
    trends: Trends
    data_quality: DataQuality


# ---------------------------------------------------------------------------
# Perspective helpers
# ---------------------------------------------------------------------------

def _own_score(match: MatchRecord, is_team1: bool) -> int:
    return match.team1_score if is_team1 else match.team2_score


def _opponent_score(match: MatchRecord, is_team1: bool) -> int:
    return match.team2_score if is_team1 else match.team1_score


def _win_outcome(is_team1: bool) -> MatchOutcome:
    return MatchOutcome.TEAM1_WINS if is_team1 else MatchOutcome.TEAM2_WINS


def _result_code(match: MatchRecord, is_team1: bool) -> int:
    """1 win, 0 draw, -1 loss from the team's point of view."""
    if match.outcome == _win_outcome(is_team1):
        return 1
    if match.outcome == MatchOutcome.DRAW:
        return 0
    return -1


# ---------------------------------------------------------------------------
# Averages and strength
# ---------------------------------------------------------------------------

def calculate_category_average(data: MatchDataSnapshot, category: MatchCategory, is_team1_slot: bool) -> float:
    """
    Average of one score slot over a single category.

    Args:
        data: Match snapshot
        category: Series to average
        is_team1_slot: Read team1_score when True, team2_score otherwise

    Returns:
        Average, 0.0 for an empty series
    """
    matches = data.series(category)
    if not matches:
        return 0.0
    return sum(_own_score(m, is_team1_slot) for m in matches) / len(matches)


def calculate_overall_team_average(data: MatchDataSnapshot, is_team1: bool) -> float:
    """Average goals scored across H2H and the team's own series (1.5 without data)."""
    scores = [_own_score(m, is_team1) for m in data.team_matches(is_team1)]
    return mean_or_default(scores, DEFAULT_TEAM_AVERAGE)


def calculate_team_average_conceded(data: MatchDataSnapshot, is_team1: bool) -> float:
    """Average goals conceded across H2H and the team's own series (1.5 without data)."""
    conceded = [_opponent_score(m, is_team1) for m in data.team_matches(is_team1)]
    return mean_or_default(conceded, DEFAULT_TEAM_AVERAGE)


def _opposition_average(data: MatchDataSnapshot, is_team1: bool) -> float:
    """Average of the opponent slot in the team's own series, 1.0 baseline when empty."""
    if is_team1:
        if data.team1:
            return calculate_category_average(data, MatchCategory.TEAM1_SERIES, False)
        return 1.0
    if data.team2:
        return calculate_category_average(data, MatchCategory.TEAM2_SERIES, True)
    return 1.0


def calculate_attack_strength(data: MatchDataSnapshot, is_team1: bool) -> float:
    """
    Attack strength relative to the league average, corrected for the
    quality of opposition faced (higher is better).
    """
    avg_scored = calculate_overall_team_average(data, is_team1)
    opp_avg_conceded = _opposition_average(data, is_team1)

    # 0.2 keeps the ratio bounded when opponents rarely scored
    return (avg_scored / LEAGUE_AVG_SCORED) * (LEAGUE_AVG_SCORED / (max(0.5, opp_avg_conceded) + 0.2))


def calculate_defense_strength(data: MatchDataSnapshot, is_team1: bool) -> float:
    """Defense strength relative to the league average (lower is better)."""
    avg_conceded = calculate_team_average_conceded(data, is_team1)
    opp_avg_scored = _opposition_average(data, is_team1)

    return (avg_conceded / LEAGUE_AVG_SCORED) * (LEAGUE_AVG_SCORED / (max(0.5, opp_avg_scored) + 0.2))


# ---------------------------------------------------------------------------
# Form, consistency, momentum
# ---------------------------------------------------------------------------

def _form_match_score(score: int, opponent_score: int, result: int) -> float:
    if result == 1:
        match_score = 3.0
        # Margin bonus with diminishing returns
        match_score += min(0.7, (score - opponent_score) * 0.15)
        if opponent_score == 0:
            match_score += 0.4
    elif result == 0:
        match_score = 1.0
        if score + opponent_score >= 4:
            match_score += 0.3
    else:
        match_score = 0.0
        if score >= 2:
            match_score += 0.4
        if opponent_score - score == 1:
            match_score += 0.3
    return match_score


def calculate_recent_form(data: MatchDataSnapshot, is_team1: bool) -> float:
    """
    Recency-weighted form over the last five matches.

    Win = 3 (+ margin and clean-sheet bonus), draw = 1 (+ high-scoring bonus),
    loss = 0 (+ small consolation bonuses). Weights decay by 0.75 per match.

    Args:
        data: Match snapshot
        is_team1: Perspective

    Returns:
        Form score normalized by a 4-point maximum, 0.5 without matches
    """
    matches = sort_by_recency(data.team_matches(is_team1), newest_first=True)
    if not matches:
        return 0.5

    form_score = 0.0
    total_weight = 0.0
    for index, match in enumerate(matches[:RECENT_FORM_WINDOW]):
        recency_weight = 0.75 ** index
        form_score += _form_match_score(
            _own_score(match, is_team1),
            _opponent_score(match, is_team1),
            _result_code(match, is_team1),
        ) * recency_weight
        total_weight += recency_weight

    return form_score / (total_weight * 4.0)


def calculate_team_consistency(data: MatchDataSnapshot, is_team1: bool) -> float:
    """
    Blend of scoring consistency (35%) and result consistency (65%).

    Result consistency is one minus the recency-weighted rate of result
    changes, read from the end of the H2H + own-series list backwards.

    Returns:
        Consistency in [0, 1], 0.5 with fewer than three matches
    """
    matches = data.team_matches(is_team1)
    scores = [_own_score(m, is_team1) for m in matches]
    results = [_result_code(m, is_team1) for m in matches]

    if len(scores) < 3:
        return 0.5

    coeff_variation = calculate_coefficient_of_variation(scores, zero_mean_value=1.0)

    result_consistency = 1.0
    if len(results) >= 3:
        result_consistency = 1 - result_change_rate(list(reversed(results)), decay=0.9)

    score_consistency = max(0.0, 1 - (coeff_variation / 2))
    return 0.35 * score_consistency + 0.65 * result_consistency


def calculate_momentum_index(data: MatchDataSnapshot, is_team1: bool) -> float:
    """
    Compare the last three matches with the whole record.

    Combines scoring momentum (25%), goal difference momentum (25%) and win
    rate momentum (50%), doubled and clamped to [-1, 1].

    Returns:
        Momentum index, 0 with fewer than three matches
    """
    matches = sort_by_recency(data.team_matches(is_team1))
    n = len(matches)
    if n < 3:
        return 0.0

    recent = matches[-MOMENTUM_WINDOW:]
    recent_count = min(MOMENTUM_WINDOW, n)
    win = _win_outcome(is_team1)

    scores = [_own_score(m, is_team1) for m in matches]
    goal_diffs = [_own_score(m, is_team1) - _opponent_score(m, is_team1) for m in matches]

    recent_avg_score = sum(_own_score(m, is_team1) for m in recent) / recent_count
    overall_avg_score = sum(scores) / n
    recent_goal_diff = sum(_own_score(m, is_team1) - _opponent_score(m, is_team1) for m in recent) / recent_count
    overall_goal_diff = sum(goal_diffs) / n
    recent_win_pct = sum(1 for m in recent if m.outcome == win) / recent_count
    overall_win_pct = sum(1 for m in matches if m.outcome == win) / n

    scoring_momentum = (recent_avg_score - overall_avg_score) / max(0.5, overall_avg_score)
    goal_diff_momentum = recent_goal_diff - overall_goal_diff
    win_momentum = recent_win_pct - overall_win_pct

    momentum = (scoring_momentum * 0.25) + (goal_diff_momentum * 0.25) + (win_momentum * 0.5)
    return clamp(momentum * 2, -1.0, 1.0)


# ---------------------------------------------------------------------------
# Venue and match context
# ---------------------------------------------------------------------------

def calculate_home_advantage(data: MatchDataSnapshot, is_team1: bool) -> float:
    """
    Home advantage multiplier.

    The team's own series is treated as home matches and the H2H series as
    away matches. Combines the home/away win-rate ratio (70%) with the goal
    difference gap (30%).

    Returns:
        Multiplier in [0.2, 2.0], 1.0 when the team's own series is empty
    """
    default_advantage = 1.0
    home_matches = data.own_series(is_team1)
    away_matches = data.h2h
    if not home_matches:
        return default_advantage

    win = _win_outcome(is_team1)
    home_win_pct = sum(1 for m in home_matches if m.outcome == win) / len(home_matches)

    away_win_pct = 0.3
    if away_matches:
        away_win_pct = sum(1 for m in away_matches if m.outcome == win) / len(away_matches)

    home_goal_diff = sum(
        _own_score(m, is_team1) - _opponent_score(m, is_team1) for m in home_matches
    ) / len(home_matches)

    away_goal_diff = -0.5
    if away_matches:
        away_goal_diff = sum(
            _own_score(m, is_team1) - _opponent_score(m, is_team1) for m in away_matches
        ) / len(away_matches)

    if home_win_pct > 0 and away_win_pct > 0:
        win_ratio_advantage = home_win_pct / away_win_pct
    else:
        win_ratio_advantage = default_advantage

    goal_diff_advantage = home_goal_diff - away_goal_diff
    combined_advantage = (win_ratio_advantage * 0.7) + (clamp(goal_diff_advantage + 1, 0, 2) * 0.3)

    return clamp(combined_advantage, 0.2, 2.0)


def calculate_match_importance_performance(data: MatchDataSnapshot, is_team1: bool) -> float:
    """
    How well a team is expected to handle high-stakes matches.

    Returns:
        0.6 * consistency + 0.4 * average result score, clamped to [0.5, 1.5];
        1.0 with fewer than two matches
    """
    matches = data.team_matches(is_team1)
    if len(matches) < 2:
        return 1.0

    consistency = calculate_team_consistency(data, is_team1)

    total_performance = 0.0
    for match in matches:
        goal_diff = _own_score(match, is_team1) - _opponent_score(match, is_team1)
        if goal_diff > 0:
            total_performance += 1.2
        elif goal_diff == 0:
            total_performance += 1.0
        else:
            total_performance += 0.8
    avg_performance = total_performance / len(matches)

    return clamp((consistency * 0.6) + (avg_performance * 0.4), 0.5, 1.5)


# ---------------------------------------------------------------------------
# Trends
# ---------------------------------------------------------------------------

def _team2_trend_score(match: MatchRecord) -> int:
    # Team 2's own series is read from the team-1 slot, which holds the
    # opponent's goals there. Kept as-is to preserve Model V1 outputs.
    return match.team2_score if match.category == MatchCategory.H2H else match.team1_score


def _recent_vs_historical(values: List[float], default: float) -> float:
    if not values:
        return 0.0
    recent_avg = recency_weighted_average(values[:TREND_WINDOW], decay=0.8)
    historical_avg = default
    if len(values) > TREND_WINDOW:
        historical = values[TREND_WINDOW:]
        historical_avg = sum(historical) / len(historical)
    return recent_avg - historical_avg


def calculate_scoring_trends(data: MatchDataSnapshot) -> ScoringTrends:
    """
    Recent (0.8-decay weighted, last five) minus historical scoring.

    Returns:
        ScoringTrends; all zeros with fewer than three matches in total
    """
    all_matches = sort_by_recency(data.all_matches(), newest_first=True)
    if len(all_matches) < 3:
        return ScoringTrends()

    overall_trend = _recent_vs_historical(
        [m.total_score for m in all_matches], default=LEAGUE_AVG_TOTAL
    )

    team1_matches = sort_by_recency(data.team_matches(True), newest_first=True)
    team2_matches = sort_by_recency(data.team_matches(False), newest_first=True)

    team1_trend = _recent_vs_historical([m.team1_score for m in team1_matches], default=1.0)
    team2_trend = _recent_vs_historical([_team2_trend_score(m) for m in team2_matches], default=1.0)

    return ScoringTrends(
        team1_trend=team1_trend,
        team2_trend=team2_trend,
        overall_trend=overall_trend,
    )


def _clean_sheet_record(matches: List[MatchRecord], is_team1: bool):
    ordered = sort_by_recency(matches, newest_first=True)
    weighted_count = 0.0
    total_weight = 0.0
    count = 0
    for index, match in enumerate(ordered):
        weight = 0.9 ** index
        if _opponent_score(match, is_team1) == 0:
            weighted_count += weight
            count += 1
        total_weight += weight
    weighted_pct = (weighted_count / total_weight) * 100 if total_weight > 0 else 0.0
    return count, weighted_pct


def calculate_clean_sheet_stats(data: MatchDataSnapshot) -> CleanSheetStats:
    """Clean sheets (opponent scored 0) with 10% decay per match back in time."""
    team1_matches = data.team_matches(True)
    team2_matches = data.team_matches(False)

    team1_count, team1_pct = _clean_sheet_record(team1_matches, True)
    team2_count, team2_pct = _clean_sheet_record(team2_matches, False)

    return CleanSheetStats(
        team1_clean_sheet_pct=team1_pct,
        team2_clean_sheet_pct=team2_pct,
        team1_clean_sheets=team1_count,
        team2_clean_sheets=team2_count,
        team1_matches=len(team1_matches),
        team2_matches=len(team2_matches),
    )


def calculate_h2h_advantage(data: MatchDataSnapshot) -> float:
    """
    Head-to-head advantage of team 1 (positive) over team 2 (negative).

    30% simple win ratio, 70% results weighted by e^(-0.2 * index), newest first.

    Returns:
        Advantage in [-1, 1], 0 without H2H matches
    """
    if not data.h2h:
        return 0.0

    team1_wins = sum(1 for m in data.h2h if m.outcome == MatchOutcome.TEAM1_WINS)
    team2_wins = sum(1 for m in data.h2h if m.outcome == MatchOutcome.TEAM2_WINS)
    advantage_ratio = (team1_wins - team2_wins) / len(data.h2h)

    weighted_advantage = 0.0
    total_weight = 0.0
    for index, match in enumerate(sort_by_recency(data.h2h, newest_first=True)):
        weight = math.exp(-0.2 * index)
        if match.outcome == MatchOutcome.TEAM1_WINS:
            weighted_advantage += weight
        elif match.outcome == MatchOutcome.TEAM2_WINS:
            weighted_advantage -= weight
        total_weight += weight

    normalized_weighted_advantage = weighted_advantage / total_weight if total_weight > 0 else 0.0
    return (advantage_ratio * 0.3) + (normalized_weighted_advantage * 0.7)


def calculate_h2h_averages(data: MatchDataSnapshot):
    """
    Average H2H total and team-1 margin.

    Returns:
        Tuple (avg_total, avg_margin), both None without H2H matches
    """
    if not data.h2h:
        return None, None
    n = len(data.h2h)
    avg_total = sum(m.total_score for m in data.h2h) / n
    avg_margin = sum(m.team1_score - m.team2_score for m in data.h2h) / n
    return avg_total, avg_margin


def prepare_team_performance_data(data: MatchDataSnapshot, is_team1: bool) -> PerformanceTrend:
    """
    Performance index per match for trend charts.

    Result base (win 65, draw 40, loss 10) plus scoring, clean sheet, goal
    difference and streak bonuses, clamped to 0-100.

    Args:
        data: Match snapshot
        is_team1: Perspective

    Returns:
        PerformanceTrend with "Match k" labels, oldest match first
    """
    matches = sort_by_recency(data.team_matches(is_team1))
    results = [_result_code(m, is_team1) for m in matches]
    base_scores = {1: 65, 0: 40, -1: 10}

    performance_data = []
    for index, match in enumerate(matches):
        score = _own_score(match, is_team1)
        opponent_score = _opponent_score(match, is_team1)

        performance = base_scores[results[index]]
        performance += min(20, score * 4)
        if opponent_score == 0:
            performance += 12

        goal_diff = score - opponent_score
        # Square-root scaling keeps blowouts from dominating
        goal_diff_factor = math.copysign(math.sqrt(abs(goal_diff)), goal_diff) * 4 if goal_diff else 0.0
        performance += clamp(goal_diff_factor, -15, 15)

        if index > 0 and results[index] == results[index - 1]:
            performance += 5

        performance_data.append(clamp(performance, 0, 100))

    labels = [f"Match {i + 1}" for i in range(len(matches))]
    return PerformanceTrend(labels=labels, data=performance_data)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def assess_data_quality(data: MatchDataSnapshot) -> DataQuality:
    total = data.total_matches
    return DataQuality(
        total_matches=total,
        team1_matches=len(data.team1),
        team2_matches=len(data.team2),
        h2h_matches=len(data.h2h),
        data_sufficiency=total >= MIN_MATCHES_FOR_GOOD_ANALYSIS,
        data_excellence=(total >= MIN_MATCHES_FOR_EXCELLENT_ANALYSIS
                         and len(data.h2h) >= MIN_H2H_MATCHES),
    )


def prepare_match_features(data: MatchDataSnapshot, config: MatchConfiguration) -> FeatureSnapshot:
    """
    Run every extractor and bundle the results.

    Args:
        data: Immutable match snapshot
        config: Match configuration for this run

    Returns:
        FeatureSnapshot consumed by the prediction model
    """
    h2h_avg_total, h2h_avg_margin = calculate_h2h_averages(data)

    basic_stats = BasicStats(
        team1_avg_score=calculate_overall_team_average(data, True),
        team2_avg_score=calculate_overall_team_average(data, False),
        team1_avg_conceded=calculate_team_average_conceded(data, True),
        team2_avg_conceded=calculate_team_average_conceded(data, False),
        h2h_advantage=calculate_h2h_advantage(data),
        location_factor=config.location_factor,
        ranking_diff=config.ranking_diff,
        match_importance=config.match_importance,
        total_line=config.total_line,
        point_spread=config.point_spread,
        spread_direction=1 if config.spread_direction == SpreadDirection.TEAM1 else -1,
        h2h_avg_total=h2h_avg_total,
        h2h_avg_margin=h2h_avg_margin,
    )

    advanced_stats = AdvancedStats(
        team1_recent_form=calculate_recent_form(data, True),
        team2_recent_form=calculate_recent_form(data, False),
        team1_defense_strength=calculate_defense_strength(data, True),
        team2_defense_strength=calculate_defense_strength(data, False),
        team1_attack_strength=calculate_attack_strength(data, True),
        team2_attack_strength=calculate_attack_strength(data, False),
        team1_consistency=calculate_team_consistency(data, True),
        team2_consistency=calculate_team_consistency(data, False),
        team1_momentum_index=calculate_momentum_index(data, True),
        team2_momentum_index=calculate_momentum_index(data, False),
        team1_home_advantage=calculate_home_advantage(data, True),
        team2_home_advantage=calculate_home_advantage(data, False),
        team1_match_importance_performance=calculate_match_importance_performance(data, True),
        team2_match_importance_performance=calculate_match_importance_performance(data, False),
    )

    trends = Trends(
        scoring=calculate_scoring_trends(data),
        clean_sheets=calculate_clean_sheet_stats(data),
    )

    features = FeatureSnapshot(
        basic_stats=basic_stats,
        advanced_stats=advanced_stats,
        trends=trends,
        data_quality=assess_data_quality(data),
    )

    logger.debug(
        f"Features: form {advanced_stats.team1_recent_form:.3f}/{advanced_stats.team2_recent_form:.3f}, "
        f"attack {advanced_stats.team1_attack_strength:.3f}/{advanced_stats.team2_attack_strength:.3f}, "
        f"h2h {basic_stats.h2h_advantage:.3f}"
    )
    return features
