"""
Tests for the Match Analyzer
============================
Ingest / configure / analyze / reset behaviour and failure isolation.
"""

import random

import pytest

import match_analyzer
from exceptions import AnalysisError, ValidationError
from match_analyzer import MatchAnalyzer
from match_records import MatchCategory


@pytest.fixture
def analyzer(tmp_path):
    return MatchAnalyzer(config_path=str(tmp_path / 'model_config.json'))


@pytest.fixture
def sample_analyzer(analyzer):
    analyzer.load_sample_data()
    return analyzer


class TestValidation:

    def test_rejects_zero_data_even_with_rankings(self, analyzer):
        analyzer.configure(team1_ranking=4, team2_ranking=2)
        with pytest.raises(ValidationError) as exc_info:
            analyzer.analyze()
        assert exc_info.value.field == 'matches'
        assert analyzer.last_result is None

    def test_rejects_identical_team_names(self, analyzer):
        analyzer.ingest('h2h', [1], [0])
        analyzer.configure(team1_name='Arsenal', team2_name='Arsenal')
        with pytest.raises(ValidationError):
            analyzer.analyze()

    def test_invalid_configuration_keeps_previous(self, analyzer):
        with pytest.raises(ValidationError):
            analyzer.configure(match_location='stadium')
        assert analyzer.config.match_location.value == 'neutral'

    @pytest.mark.parametrize("fields", [
        {'total_line': '2.5'},
        {'team1_name': None},
        {'match_importance': 'high'},
    ])
    def test_wrongly_typed_configuration(self, analyzer, fields):
        previous = analyzer.config
        with pytest.raises(ValidationError) as exc_info:
            analyzer.configure(**fields)
        assert exc_info.value.field == list(fields)[0]
        assert analyzer.config is previous

    def test_wrongly_typed_timestamps(self, analyzer):
        with pytest.raises(ValidationError) as exc_info:
            analyzer.ingest('team1', [1, 2], [0, 0], timestamps=[None, 'x'])
        assert exc_info.value.field == 'timestamps'
        assert analyzer.store.total_match_count == 0

    def test_unknown_configuration_field(self, analyzer):
        with pytest.raises(ValidationError):
            analyzer.configure(weather='rain')


class TestAnalyze:

    def test_sample_analysis(self, sample_analyzer):
        result = sample_analyzer.analyze()
        probs = result.probabilities

        assert probs.team1_win + probs.team2_win + probs.draw == pytest.approx(100)
        assert result.features.data_quality.total_matches == 17
        assert result.features.data_quality.level == 'excellent'
        assert len(result.feature_importance) == 9
        assert len(result.insights) <= 6
        assert len(result.alternative_scores) == 3
        assert sum(s.probability for s in result.score_distribution) == pytest.approx(100)
        assert result.betting.over_under.line_set
        assert result.betting.spread.line_set
        assert sample_analyzer.last_result is result

    def test_projected_score_matches_projection(self, sample_analyzer):
        result = sample_analyzer.analyze()
        team1_score, team2_score = result.projected_score
        assert team1_score >= 0 and team2_score >= 0
        assert abs(team1_score + team2_score - result.projected_total) <= 1.0

    def test_margin_agrees_with_predicted_winner(self, sample_analyzer):
        result = sample_analyzer.analyze()
        outcome = result.probabilities.predicted_outcome
        if outcome == 'team1':
            assert result.projected_margin > 0.25
        elif outcome == 'team2':
            assert result.projected_margin < -0.25

    def test_idempotent(self, sample_analyzer):
        first = sample_analyzer.analyze()
        second = sample_analyzer.analyze()
        assert first.probabilities == second.probabilities
        assert first.projected_total == second.projected_total
        assert first.projected_margin == second.projected_margin
        assert first.feature_importance == second.feature_importance

    def test_configuration_change_recomputes(self, sample_analyzer):
        neutral = sample_analyzer.analyze()
        sample_analyzer.configure(match_location='home')
        home = sample_analyzer.analyze()
        assert home.probabilities.team1_win > neutral.probabilities.team1_win
        assert home.config.match_location.value == 'home'
        # Result keeps its own configuration copy
        assert neutral.config.match_location.value == 'neutral'

    def test_failure_keeps_previous_result(self, sample_analyzer, monkeypatch):
        previous = sample_analyzer.analyze()

        def broken(features):
            raise ZeroDivisionError("boom")

        monkeypatch.setattr(match_analyzer, 'calculate_projected_total', broken)
        with pytest.raises(AnalysisError) as exc_info:
            sample_analyzer.analyze()

        assert isinstance(exc_info.value.__cause__, ZeroDivisionError)
        assert sample_analyzer.last_result is previous

    def test_random_lopsided_matches_keep_probability_floor(self, analyzer):
        rng = random.Random(20)
        for _ in range(150):
            for category in ('h2h', 'team1', 'team2'):
                n = rng.randint(1, 8)
                analyzer.ingest(category,
                                [rng.randint(0, 7) for _ in range(n)],
                                [rng.randint(0, 2) for _ in range(n)])
            analyzer.configure(match_location=rng.choice(['home', 'away', 'neutral']),
                               team1_ranking=rng.randint(1, 30),
                               team2_ranking=rng.randint(1, 30),
                               match_importance=rng.choice([0.5, 1.0, 1.5]))
            probs = analyzer.analyze().probabilities
            assert probs.team1_win + probs.team2_win + probs.draw == pytest.approx(100)
            assert min(probs.team1_win, probs.team2_win, probs.draw) >= 5 - 1e-9

    def test_insufficient_data_still_analyzes(self, analyzer):
        analyzer.ingest('h2h', [3, 0], [1, 0])
        result = analyzer.analyze()
        assert result.features.data_quality.level == 'insufficient'
        assert result.betting.over_under.recommendation == 'NO LINE SET'
        assert result.betting.spread.recommendation == 'NO SPREAD SET'


class TestLifecycle:

    def test_reset(self, sample_analyzer):
        sample_analyzer.reset()
        assert sample_analyzer.store.total_match_count == 0
        with pytest.raises(ValidationError):
            sample_analyzer.analyze()

    def test_data_quality_before_analysis(self, analyzer):
        analyzer.ingest(MatchCategory.TEAM1_SERIES, [1, 2], [0, 0])
        quality = analyzer.data_quality()
        assert quality.total_matches == 2
        assert quality.matches_needed == 2

    def test_line_change_recomputes_flags(self, sample_analyzer):
        sample_analyzer.configure(total_line=3.5)
        h2h = sample_analyzer.store.matches(MatchCategory.H2H)
        # 1-1, 2-2, 1-0, 2-1, 0-1
        assert [m.total_over_line for m in h2h] == [False, True, False, False, False]

        sample_analyzer.configure(total_line=0, point_spread=0)
        assert all(m.total_over_line is None for m in sample_analyzer.store.matches(MatchCategory.TEAM2_SERIES))
        assert all(m.spread_cover is None for m in sample_analyzer.store.matches(MatchCategory.H2H))

    def test_ingest_uses_current_lines(self, analyzer):
        analyzer.configure(total_line=1.5)
        analyzer.ingest('team2', [2], [0])
        assert analyzer.store.matches('team2')[0].total_over_line is True

    def test_weights_from_config_file(self, tmp_path):
        path = tmp_path / 'weights.json'
        path.write_text('{"weights": {"MOMENTUM": 0.5}}')
        analyzer = MatchAnalyzer(config_path=str(path))
        assert analyzer.weights['MOMENTUM'] == 0.5
