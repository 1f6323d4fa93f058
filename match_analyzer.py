"""
Match Analyzer - Model V1 Orchestration
=======================================
Single entry point tying the pipeline together:

    ingest -> configure -> analyze -> (reset)

analyze() takes an atomic snapshot of the match store and a copy of the
configuration, runs feature extraction, the prediction model, consistency
reconciliation and every downstream derivation, and keeps the result as
``last_result`` only when the whole run succeeded.

Author: Football Analytics System
Version: 1.0 - Model V1
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Sequence, Tuple

from decision_engine import BettingAnalysis, BettingSignalGenerator
from exceptions import AnalysisError, ValidationError
from feature_engineering import (
    DataQuality,
    FeatureSnapshot,
    PerformanceTrend,
    assess_data_quality,
    prepare_match_features,
    prepare_team_performance_data,
)
from football_predictor import (
    AlternativeScore,
    ScoreProbability,
    WinProbabilities,
    calculate_projected_margin,
    calculate_projected_total,
    calculate_win_probabilities,
    ensure_prediction_consistency,
    generate_alternative_scores,
    generate_score_distribution,
    project_scoreline,
)
from match_insights import (
    MatchInsight,
    calculate_feature_importance,
    generate_match_factors,
    generate_match_insights,
)
from match_records import IngestResult, MatchCategory, MatchStore
from model_config import DEFAULT_CONFIG_PATH, MatchConfiguration, load_model_config

logger = logging.getLogger(__name__)

LINE_FIELDS = ('total_line', 'point_spread', 'spread_direction')

SAMPLE_DATA = {
    'config': {
        'team1_name': 'Liverpool',
        'team2_name': 'Manchester City',
        'team1_ranking': 4,
        'team2_ranking': 2,
        'total_line': 2.5,
        'point_spread': 1.0,
    },
    MatchCategory.H2H: ([1, 2, 1, 2, 0], [1, 2, 0, 1, 1]),
    MatchCategory.TEAM1_SERIES: ([2, 3, 1, 0, 2, 3], [0, 1, 0, 0, 1, 1]),
    MatchCategory.TEAM2_SERIES: ([3, 2, 1, 3, 4, 2], [0, 0, 0, 1, 1, 2]),
}


@dataclass(frozen=True)
class AnalysisResult:
    """Everything produced by one successful analysis run."""
    probabilities: WinProbabilities
    projected_total: float
    projected_margin: float
    projected_score: Tuple[int, int]
    config: MatchConfiguration
    features: FeatureSnapshot
    betting: BettingAnalysis
    score_distribution: List[ScoreProbability]
    feature_importance: Dict[str, int]
    insights: List[MatchInsight]
    match_factors: List[str]
    alternative_scores: List[AlternativeScore]
    performance_trends: Tuple[PerformanceTrend, PerformanceTrend]


class MatchAnalyzer:
    """
    Model V1 match analyzer.

    Holds the match store, the current configuration and the last
    successful result. Validation errors are raised before any state
    changes; pipeline failures raise AnalysisError and keep the previous
    result.
    """

    def __init__(self, config: Optional[MatchConfiguration] = None,
                 config_path: str = DEFAULT_CONFIG_PATH,
                 signal_generator: Optional[BettingSignalGenerator] = None):
        """
        Initialize the analyzer.

        Args:
            config: Initial match configuration (defaults to Team 1 vs Team 2)
            config_path: Optional JSON file with weight overrides
            signal_generator: Betting signal generator (creates new if None)
        """
        self.store = MatchStore()
        self.config = config if config is not None else MatchConfiguration()
        self.weights = load_model_config(config_path)['weights']
        self.signal_generator = signal_generator if signal_generator else BettingSignalGenerator()
        self.last_result: Optional[AnalysisResult] = None

    def ingest(self, category: MatchCategory, scores1: Sequence[int], scores2: Sequence[int],
               timestamps: Optional[Sequence[int]] = None) -> IngestResult:
        """
        Replace one match series.

        Args:
            category: 'h2h', 'team1' or 'team2'
            scores1: Team 1 scores for H2H, otherwise the named team's scores
            scores2: Team 2 scores for H2H, otherwise the opponents' scores
            timestamps: Optional recency slots, oldest first

        Returns:
            IngestResult with the count added and any truncation warning
        """
        return self.store.ingest(category, scores1, scores2, self.config, timestamps)

    def configure(self, **fields) -> MatchConfiguration:
        """
        Update the match configuration.

        Changing the total line, point spread or spread direction recomputes
        the over-line and spread-cover flags on every stored match.

        Returns:
            The new configuration

        Raises:
            ValidationError: For unknown fields or invalid values
        """
        new_config = self.config.updated(**fields)
        lines_changed = any(getattr(new_config, f) != getattr(self.config, f) for f in LINE_FIELDS)

        self.config = new_config
        if lines_changed:
            self.store.apply_betting_lines(new_config)
            logger.info("Betting lines changed, match line flags recomputed")
        return new_config

    def reset(self):
        """Clear all match data (configuration is kept)."""
        self.store.reset()

    def load_sample_data(self):
        """Replace everything with a ready-made Liverpool vs Manchester City example."""
        self.reset()
        self.configure(**SAMPLE_DATA['config'])
        for category in (MatchCategory.H2H, MatchCategory.TEAM1_SERIES, MatchCategory.TEAM2_SERIES):
            scores1, scores2 = SAMPLE_DATA[category]
            self.ingest(category, scores1, scores2)
        logger.info("Sample data added successfully")

    def data_quality(self) -> DataQuality:
        """Data sufficiency of the currently stored matches."""
        return assess_data_quality(self.store.snapshot())

    def analyze(self) -> AnalysisResult:
        """
        Run the full Model V1 pipeline on a snapshot of the current data.

        Returns:
            AnalysisResult (also kept as last_result)

        Raises:
            ValidationError: No match data, or missing/identical team names
            AnalysisError: Any failure inside the pipeline
        """
        data = self.store.snapshot()
        if data.total_matches == 0:
            raise ValidationError("Please add some match data before analyzing", field='matches')

        config = replace(self.config)
        config.validate_team_names()

        try:
            result = self._run_pipeline(data, config)
        except Exception as e:
            logger.exception("Analysis failed")
            raise AnalysisError(f"Analysis failed: {e}") from e

        self.last_result = result
        return result

    def _run_pipeline(self, data, config: MatchConfiguration) -> AnalysisResult:
        features = prepare_match_features(data, config)
        quality = features.data_quality
        if not quality.data_sufficiency:
            logger.warning(
                f"Only {quality.total_matches} matches available, "
                f"add {quality.matches_needed} more for a reliable analysis"
            )

        probabilities = calculate_win_probabilities(features, self.weights)
        projected_total = calculate_projected_total(features)
        raw_margin = calculate_projected_margin(features)
        probabilities, projected_margin = ensure_prediction_consistency(probabilities, raw_margin)

        betting = self.signal_generator.generate_signal(projected_total, projected_margin, config)
        team1_score, team2_score = project_scoreline(projected_total, projected_margin)

        result = AnalysisResult(
            probabilities=probabilities,
            projected_total=projected_total,
            projected_margin=projected_margin,
            projected_score=(team1_score, team2_score),
            config=config,
            features=features,
            betting=betting,
            score_distribution=generate_score_distribution(projected_total, projected_margin),
            feature_importance=calculate_feature_importance(features),
            insights=generate_match_insights(features, projected_margin, projected_total, config),
            match_factors=generate_match_factors(features, config),
            alternative_scores=generate_alternative_scores(
                team1_score, team2_score, projected_total, projected_margin,
                config.team1_name, config.team2_name
            ),
            performance_trends=(
                prepare_team_performance_data(data, True),
                prepare_team_performance_data(data, False),
            ),
        )

        logger.info(
            f"{config.team1_name} vs {config.team2_name}: "
            f"{probabilities.team1_win:.1f}% / {probabilities.draw:.1f}% / {probabilities.team2_win:.1f}%, "
            f"projected {team1_score}-{team2_score} (total {projected_total:.2f})"
        )
        return result
