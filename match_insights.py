"""
Match Insights and Reporting
============================
Everything derived from a finished Model V1 run for presentation:

- Feature importance ranking (nine named factors summing to ~500)
- Structured match insights and match-specific factors
- Winner summary with confidence level
- pandas frames for the score distribution and performance trends
- Plain-text analysis report

Author: Football Analytics System
Version: 1.0 - Model V1
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, TYPE_CHECKING

import pandas as pd

from advanced_statistics import clamp, round_half_up
from feature_engineering import FeatureSnapshot, PerformanceTrend
from football_predictor import ScoreProbability, WinProbabilities
from model_config import MIN_H2H_MATCHES, MatchConfiguration

if TYPE_CHECKING:
    from match_analyzer import AnalysisResult

IMPORTANCE_TARGET_TOTAL = 500
MAX_INSIGHTS = 6


# ---------------------------------------------------------------------------
# Feature importance
# ---------------------------------------------------------------------------

def calculate_feature_importance(features: FeatureSnapshot) -> Dict[str, int]:
    """
    Rank the nine factors driving the prediction.

    Each raw score is clamped to [10, 95], rescaled so the nine values sum
    to 500, rounded (halves up) and clamped again.

    Args:
        features: Feature snapshot for the match

    Returns:
        Ordered dict of factor name -> importance, highest first
        (ties keep factor order)
    """
    basic = features.basic_stats
    adv = features.advanced_stats
    scoring = features.trends.scoring

    importance = {
        'Head-to-Head History': (abs(basic.h2h_advantage) * 100 + 15
                                 if features.data_quality.h2h_matches >= MIN_H2H_MATCHES else 30),
        'Recent Form': abs(adv.team1_recent_form - adv.team2_recent_form) * 100 + 10,
        'Offensive Strength': abs(adv.team1_attack_strength - adv.team2_attack_strength) * 50 + 15,
        'Defensive Stability': abs(adv.team1_defense_strength - adv.team2_defense_strength) * 55 + 15,
        'Home Advantage': abs(basic.location_factor) * 65 + 10 if basic.location_factor != 0 else 20,
        'Team Momentum': abs(adv.team1_momentum_index - adv.team2_momentum_index) * 65 + 10,
        'Match Importance': (abs(basic.match_importance - 1) * 55 + 10
                             if basic.match_importance != 1 else 20),
        'Team Ranking': abs(basic.ranking_diff) * 3.2 + 10 if basic.ranking_diff != 0 else 20,
        'Scoring Trends': abs(scoring.team1_trend - scoring.team2_trend) * 45 + 10,
    }

    importance = {name: clamp(value, 10, 95) for name, value in importance.items()}

    total = sum(importance.values())
    factor = IMPORTANCE_TARGET_TOTAL / total
    scaled = {
        name: int(clamp(round_half_up(value * factor), 10, 95))
        for name, value in importance.items()
    }

    return dict(sorted(scaled.items(), key=lambda item: item[1], reverse=True))


# ---------------------------------------------------------------------------
# Winner summary
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class WinnerSummary:
    outcome: str  # 'team1', 'team2' or 'draw'
    name: str  # winning team name, or 'Draw'
    probability: float
    confidence_level: str  # High / Medium / Low


def confidence_level(probability: float) -> str:
    """High at 60% or more, Medium at 45% or more, Low otherwise."""
    if probability >= 60:
        return 'High'
    elif probability >= 45:
        return 'Medium'
    return 'Low'


def summarize_winner(probabilities: WinProbabilities, config: MatchConfiguration) -> WinnerSummary:
    """Headline winner: a team only when strictly most likely, otherwise 'Draw'."""
    team1, team2, draw = probabilities.team1_win, probabilities.team2_win, probabilities.draw
    if team1 > team2 and team1 > draw:
        return WinnerSummary('team1', config.team1_name, team1, confidence_level(team1))
    if team2 > team1 and team2 > draw:
        return WinnerSummary('team2', config.team2_name, team2, confidence_level(team2))
    return WinnerSummary('draw', 'Draw', draw, confidence_level(draw))


def describe_scoreline(team1_score: int, team2_score: int, config: MatchConfiguration) -> str:
    if team1_score > team2_score + 2:
        return f"Comfortable {config.team1_name} victory"
    elif team1_score > team2_score:
        return f"Narrow {config.team1_name} win"
    elif team2_score > team1_score + 2:
        return f"Comfortable {config.team2_name} victory"
    elif team2_score > team1_score:
        return f"Narrow {config.team2_name} win"
    return "Competitive draw"


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MatchInsight:
    """
    One observation about the match.

    code identifies the kind of insight, team names the team it is about
    (if any) and value carries its headline number.
    """
    code: str
    team: Optional[str] = None
    value: Optional[float] = None

    @property
    def message(self) -> str:
        templates = {
            'form_gap': "{team} shows significantly better recent form ({value:.0f}% stronger)",
            'momentum': "{team} has strong momentum coming into this match",
            'h2h_advantage': "{team} has a historical advantage in head-to-head matchups ({value:.0f}% edge)",
            'h2h_even': "Head-to-head history shows evenly matched teams",
            'home_team1': "{team} has home advantage (historically {value:.0f}% stronger at home)",
            'home_team2': "{team} has home advantage (expect ~25% performance boost)",
            'scoring_up': "Recent matches show increasing scoring trends (+{value:.1f} goals above average)",
            'scoring_down': "Recent matches show decreasing scoring trends ({value:.1f} goals below average)",
            'clean_sheets': "{team} has strong defensive record with {value:.0f}% clean sheet rate",
            'inconsistent': "{team} shows high performance variability, making the outcome less predictable",
            'high_importance': "High match importance tends to favor the stronger team and can lead to more cautious play",
            'low_importance': "Lower match importance often produces more open, higher-scoring games",
            'ranking': "{team} has a significant ranking advantage (approximately {value:.0f}% edge)",
            'high_scoring': "Model predicts a high-scoring match with {value:.1f} total goals",
            'low_scoring': "Model predicts a low-scoring match with {value:.1f} total goals",
            'big_margin': "Model projects a significant margin of victory for {team} ({value:.1f} goals)",
            'close_match': "Model projects a very close match with minimal goal difference",
        }
        return templates[self.code].format(team=self.team, value=self.value)


def generate_match_insights(features: FeatureSnapshot, projected_margin: float,
                            projected_total: float, config: MatchConfiguration) -> List[MatchInsight]:
    """
    Collect up to six notable observations, most decisive first.

    Args:
        features: Feature snapshot for the match
        projected_margin: Reconciled projected margin
        projected_total: Projected combined score
        config: Match configuration (team names)

    Returns:
        List of MatchInsight
    """
    basic = features.basic_stats
    adv = features.advanced_stats
    scoring = features.trends.scoring
    clean_sheets = features.trends.clean_sheets
    team1, team2 = config.team1_name, config.team2_name

    insights = []

    form_diff = adv.team1_recent_form - adv.team2_recent_form
    if abs(form_diff) > 0.15:
        insights.append(MatchInsight('form_gap', team1 if form_diff > 0 else team2, abs(form_diff * 100)))

    momentum_diff = adv.team1_momentum_index - adv.team2_momentum_index
    if abs(momentum_diff) > 0.25:
        insights.append(MatchInsight('momentum', team1 if momentum_diff > 0 else team2))

    if features.data_quality.h2h_matches >= MIN_H2H_MATCHES:
        if abs(basic.h2h_advantage) > 0.2:
            insights.append(MatchInsight(
                'h2h_advantage', team1 if basic.h2h_advantage > 0 else team2, abs(basic.h2h_advantage * 100)
            ))
        else:
            insights.append(MatchInsight('h2h_even'))

    if basic.location_factor == 1:
        insights.append(MatchInsight('home_team1', team1, adv.team1_home_advantage * 100))
    elif basic.location_factor == -1:
        insights.append(MatchInsight('home_team2', team2))

    if abs(scoring.overall_trend) > 0.3:
        code = 'scoring_up' if scoring.overall_trend > 0 else 'scoring_down'
        insights.append(MatchInsight(code, value=scoring.overall_trend))

    if clean_sheets.team1_clean_sheet_pct > 40 or clean_sheets.team2_clean_sheet_pct > 40:
        better = team1 if clean_sheets.team1_clean_sheet_pct > clean_sheets.team2_clean_sheet_pct else team2
        pct = max(clean_sheets.team1_clean_sheet_pct, clean_sheets.team2_clean_sheet_pct)
        insights.append(MatchInsight('clean_sheets', better, pct))

    if adv.team1_consistency < 0.4 or adv.team2_consistency < 0.4:
        inconsistent = team1 if adv.team1_consistency < adv.team2_consistency else team2
        insights.append(MatchInsight('inconsistent', inconsistent))

    if basic.match_importance > 1.3:
        insights.append(MatchInsight('high_importance'))
    elif basic.match_importance < 0.9:
        insights.append(MatchInsight('low_importance'))

    if abs(basic.ranking_diff) > 5:
        higher_ranked = team1 if basic.ranking_diff < 0 else team2
        insights.append(MatchInsight('ranking', higher_ranked, (5 / abs(basic.ranking_diff)) * 100))

    if projected_total > 3.5:
        insights.append(MatchInsight('high_scoring', value=projected_total))
    elif projected_total < 2:
        insights.append(MatchInsight('low_scoring', value=projected_total))

    if abs(projected_margin) > 1.5:
        insights.append(MatchInsight('big_margin', team1 if projected_margin > 0 else team2, abs(projected_margin)))
    elif abs(projected_margin) < 0.5:
        insights.append(MatchInsight('close_match'))

    return insights[:MAX_INSIGHTS]


def describe_match_importance(importance: float) -> str:
    if importance < 1:
        return 'Friendly'
    elif importance == 1:
        return 'Regular'
    elif importance <= 1.3:
        return 'Important'
    return 'High-stakes'


def generate_match_factors(features: FeatureSnapshot, config: MatchConfiguration) -> List[str]:
    """Match-specific context lines: importance, venue, rankings, averages, defense."""
    basic = features.basic_stats
    adv = features.advanced_stats
    team1, team2 = config.team1_name, config.team2_name

    factors = [
        f"This is a {describe_match_importance(basic.match_importance)} match "
        f"(importance factor: {basic.match_importance:.1f})"
    ]

    if basic.location_factor == 1:
        factors.append(f"{team1} playing at home (advantage multiplier: {adv.team1_home_advantage:.2f}x)")
    elif basic.location_factor == -1:
        factors.append(f"{team2} playing at home (advantage multiplier: {adv.team2_home_advantage:.2f}x)")
    else:
        factors.append("Match played at a neutral venue (no home advantage)")

    if config.team1_ranking > 0 and config.team2_ranking > 0:
        factors.append(f"Team rankings: {team1} (#{config.team1_ranking}) vs {team2} (#{config.team2_ranking})")

    factors.append(f"{team1} average score: {basic.team1_avg_score:.2f} goals per match")
    factors.append(f"{team2} average score: {basic.team2_avg_score:.2f} goals per match")

    for name, strength in ((team1, adv.team1_defense_strength), (team2, adv.team2_defense_strength)):
        # Lower is better for defense strength
        level = 'Above' if strength < 1 else 'Below'
        factors.append(f"{name} defensive strength: {level} average ({strength:.2f})")

    return factors


# ---------------------------------------------------------------------------
# pandas exports
# ---------------------------------------------------------------------------

def score_distribution_frame(distribution: List[ScoreProbability]) -> pd.DataFrame:
    """Score distribution as a DataFrame (one row per scoreline, sorted as given)."""
    return pd.DataFrame([
        {
            'score': s.label,
            'team1_score': s.team1_score,
            'team2_score': s.team2_score,
            'probability': s.probability,
        }
        for s in distribution
    ], columns=['score', 'team1_score', 'team2_score', 'probability'])


def performance_trend_frame(team1_trend: PerformanceTrend, team2_trend: PerformanceTrend,
                            team1_name: str = 'Team 1', team2_name: str = 'Team 2') -> pd.DataFrame:
    """
    Both performance series side by side, indexed by match label.

    Series of different lengths are aligned on the label; missing matches are NaN.
    """
    return pd.DataFrame({
        f"{team1_name} Performance": pd.Series(team1_trend.data, index=team1_trend.labels, dtype=float),
        f"{team2_name} Performance": pd.Series(team2_trend.data, index=team2_trend.labels, dtype=float),
    })


# ---------------------------------------------------------------------------
# Text report
# ---------------------------------------------------------------------------

def format_analysis(result: 'AnalysisResult') -> str:
    """
    Render an analysis result as a console report.

    Args:
        result: Result of MatchAnalyzer.analyze()

    Returns:
        Multi-line string
    """
    config = result.config
    probs = result.probabilities
    team1_score, team2_score = result.projected_score
    winner = summarize_winner(probs, config)
    quality = result.features.data_quality

    lines = []
    lines.append(f"\n{'=' * 70}")
    lines.append(f"MODEL V1 ANALYSIS: {config.team1_name} vs {config.team2_name}")
    lines.append(f"{'=' * 70}")

    lines.append(f"\n{winner.confidence_level} Confidence ({winner.probability:.1f}%) - {winner.name}")
    lines.append(f"  {config.team1_name:<25} {probs.team1_win:5.1f}%")
    lines.append(f"  {config.team2_name:<25} {probs.team2_win:5.1f}%")
    lines.append(f"  {'Draw':<25} {probs.draw:5.1f}%")

    lines.append(f"\nProjected Score: {config.team1_name} {team1_score} - {team2_score} {config.team2_name}")
    lines.append(f"  {describe_scoreline(team1_score, team2_score, config)}")
    lines.append(f"  Projected total: {result.projected_total:.1f}  margin: {result.projected_margin:+.2f}")

    betting = result.betting
    lines.append("\nBetting Lines:")
    for signal in (betting.over_under, betting.spread):
        label = f" ({signal.line_label})" if signal.line_set else ''
        lines.append(f"  {signal.market.title()}{label}: {signal.recommendation}")
        if signal.line_set:
            stars = '*' * signal.value_stars + '.' * (5 - signal.value_stars)
            lines.append(f"    {signal.edge_strength} Edge: {abs(signal.edge):.1f}% [{stars}] "
                         f"Est. Win Probability: {signal.win_pct:.0f}%")
    if betting.best_bet:
        lines.append(f"  Best Bet: {betting.best_bet.recommendation} "
                     f"(Confidence: {betting.best_bet.confidence:.0f}%)")

    lines.append("\nKey Predictive Factors:")
    for name, importance in list(result.feature_importance.items())[:5]:
        lines.append(f"  {name:<25} {importance:3d}%")

    if result.insights:
        lines.append("\nMatch Insights:")
        for insight in result.insights:
            lines.append(f"  • {insight.message}")

    lines.append("\nMatch-Specific Factors:")
    for factor in result.match_factors:
        lines.append(f"  • {factor}")

    lines.append("\nMost Likely Scores:")
    for score in result.score_distribution[:5]:
        lines.append(f"  {score.label:<6} {score.probability:5.1f}%")

    if result.alternative_scores:
        lines.append("\nAlternative Scores:")
        for alt in result.alternative_scores:
            lines.append(f"  {alt.team1_score}-{alt.team2_score}  {alt.probability:3.0f}%  {alt.description}")

    lines.append(f"\nData: {quality.total_matches} matches ({quality.h2h_matches} head-to-head), "
                 f"quality {quality.level}")
    lines.append(f"{'=' * 70}\n")

    return "\n".join(lines)
