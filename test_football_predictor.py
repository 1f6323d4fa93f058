"""
Tests for the Model V1 Prediction Model
=======================================
Probability invariants, projections, reconciliation and score distribution.
"""

import pytest

from feature_engineering import prepare_match_features
from football_predictor import (
    WinProbabilities,
    apply_probability_floor,
    calculate_projected_margin,
    calculate_projected_total,
    calculate_win_probabilities,
    ensure_prediction_consistency,
    generate_alternative_scores,
    generate_score_distribution,
    normalized_ranking_diff,
    project_scoreline,
)
from match_records import MatchDataSnapshot, MatchStore
from model_config import WEIGHTS, MatchConfiguration


def empty_features(**config_fields):
    return prepare_match_features(MatchDataSnapshot(), MatchConfiguration(**config_fields))


def sample_features(**config_fields):
    config = MatchConfiguration(**config_fields)
    store = MatchStore()
    store.ingest('h2h', [1, 2, 1, 2, 0], [1, 2, 0, 1, 1], config)
    store.ingest('team1', [2, 3, 1, 0, 2, 3], [0, 1, 0, 0, 1, 1], config)
    store.ingest('team2', [3, 2, 1, 3, 4, 2], [0, 0, 0, 1, 1, 2], config)
    return prepare_match_features(store.snapshot(), config)


class TestWinProbabilities:

    def test_symmetric_teams_without_data(self):
        probs = calculate_win_probabilities(empty_features())
        # draw 35 - 4 * 3.0 = 23, then 30% reversion toward 40/40/20
        assert probs.team1_win == pytest.approx(38.95)
        assert probs.team2_win == pytest.approx(38.95)
        assert probs.draw == pytest.approx(22.1)

    @pytest.mark.parametrize("config_fields", [
        {},
        {'match_location': 'home'},
        {'match_location': 'away', 'match_importance': 1.5},
        {'team1_ranking': 1, 'team2_ranking': 20, 'match_importance': 0.5},
    ])
    def test_sum_and_floor(self, config_fields):
        probs = calculate_win_probabilities(sample_features(**config_fields))
        assert probs.team1_win + probs.team2_win + probs.draw == pytest.approx(100)
        assert min(probs.team1_win, probs.team2_win, probs.draw) >= 5 - 1e-9

    def test_better_ranking_favors_team1(self):
        probs = calculate_win_probabilities(empty_features(team1_ranking=1, team2_ranking=21))
        assert probs.team1_win > probs.team2_win

    def test_home_advantage_favors_home_team(self):
        home = calculate_win_probabilities(sample_features(match_location='home'))
        away = calculate_win_probabilities(sample_features(match_location='away'))
        assert home.team1_win > away.team1_win

    def test_weights_override(self):
        weights = dict(WEIGHTS, RANKING=0.0)
        probs = calculate_win_probabilities(empty_features(team1_ranking=1, team2_ranking=21), weights)
        assert probs.team1_win == pytest.approx(probs.team2_win)

    def test_normalized_ranking_diff(self):
        assert normalized_ranking_diff(0) == 0.0
        assert normalized_ranking_diff(-10) == pytest.approx(0.5)
        assert normalized_ranking_diff(40) == -1.0


class TestProbabilityFloor:

    def test_single_pass_when_floor_holds(self):
        assert apply_probability_floor([60.0, 30.0, 10.0]) == pytest.approx([60.0, 30.0, 10.0])

    def test_two_values_below_floor(self):
        probs = apply_probability_floor([2.0, 94.0, 4.0])
        assert probs == pytest.approx([5.0, 90.0, 5.0])

    def test_one_value_below_floor(self):
        probs = apply_probability_floor([1.0, 79.0, 20.0])
        assert probs[0] == pytest.approx(5.0)
        assert sum(probs) == pytest.approx(100)
        assert probs[1] / probs[2] == pytest.approx(79.0 / 20.0)

    def test_dominant_team(self):
        config = MatchConfiguration(team1_ranking=1, team2_ranking=20, match_location='home')
        store = MatchStore()
        store.ingest('h2h', [5, 4, 6, 5, 4], [0, 0, 0, 0, 0], config)
        store.ingest('team1', [6, 5, 7, 4, 6, 5], [0, 0, 0, 0, 0, 0], config)
        store.ingest('team2', [0, 0, 0, 0, 0, 0], [4, 5, 3, 6, 4, 5], config)
        probs = calculate_win_probabilities(prepare_match_features(store.snapshot(), config))

        assert probs.team1_win + probs.team2_win + probs.draw == pytest.approx(100)
        assert min(probs.team2_win, probs.draw) >= 5 - 1e-9
        assert probs.team1_win > 80


class TestProjections:

    def test_projected_total_without_data(self):
        # 3.0 base + 0.25 defense + 0.25 attack + 0.4 consistency, then 60/40 with 2.5
        assert calculate_projected_total(empty_features()) == pytest.approx(3.34)

    def test_projected_margin_without_data(self):
        assert calculate_projected_margin(empty_features()) == pytest.approx(0.0)

    def test_home_location_moves_margin(self):
        neutral = calculate_projected_margin(sample_features())
        home = calculate_projected_margin(sample_features(match_location='home'))
        assert home == pytest.approx(neutral + 0.4)

    def test_total_floor(self):
        assert calculate_projected_total(sample_features(match_importance=50)) == 0.5


class TestReconciliation:

    def test_agreeing_margin_unchanged(self):
        probs = WinProbabilities(50, 30, 20)
        adjusted, margin = ensure_prediction_consistency(probs, 1.2)
        assert margin == 1.2
        assert adjusted == probs

    def test_margin_flipped_toward_probability_winner(self):
        _, margin = ensure_prediction_consistency(WinProbabilities(50, 30, 20), -1.0)
        assert margin == pytest.approx(0.8)

    def test_small_margin_pushed_to_threshold(self):
        _, margin = ensure_prediction_consistency(WinProbabilities(30, 50, 20), 0.1)
        assert margin == pytest.approx(-0.25)

    def test_draw_shrinks_margin(self):
        _, margin = ensure_prediction_consistency(WinProbabilities(30, 30, 40), 1.0)
        assert margin == pytest.approx(0.2)

    def test_ties_resolve_to_team1(self):
        probs = WinProbabilities(40, 40, 20)
        assert probs.predicted_outcome == 'team1'
        _, margin = ensure_prediction_consistency(probs, -0.5)
        assert margin == pytest.approx(0.4)

    def test_draw_needs_strict_maximum(self):
        assert WinProbabilities(35, 30, 35).predicted_outcome == 'team1'
        assert WinProbabilities(30, 35, 35).predicted_outcome == 'team2'

    def test_probabilities_are_copied(self):
        probs = WinProbabilities(50, 30, 20)
        adjusted, _ = ensure_prediction_consistency(probs, -2.0)
        assert adjusted == probs
        assert adjusted is not probs


class TestScoreDistribution:

    def test_sums_to_100_and_sorted(self):
        distribution = generate_score_distribution(2.7, 0.4)
        probabilities = [s.probability for s in distribution]
        assert sum(probabilities) == pytest.approx(100)
        assert probabilities == sorted(probabilities, reverse=True)
        assert len([s for s in distribution if not s.is_other]) == 25

    def test_no_other_bucket_after_normalization(self):
        distribution = generate_score_distribution(3.0, 0.0)
        assert not any(s.is_other for s in distribution)

    def test_zero_mean_puts_mass_on_zero(self):
        # team 2 mean = 0.5 / 2 - 0.5 / 2 = 0
        distribution = generate_score_distribution(0.5, 0.5)
        assert all(s.team2_score == 0 for s in distribution if s.probability > 0)

    def test_low_total_favors_goalless_draw(self):
        distribution = generate_score_distribution(1.0, 0.0)
        assert distribution[0].label == '0-0'

    def test_favorite_has_more_mass(self):
        distribution = generate_score_distribution(3.0, 1.5)
        team1_wins = sum(s.probability for s in distribution if s.team1_score > s.team2_score)
        team2_wins = sum(s.probability for s in distribution if s.team2_score > s.team1_score)
        assert team1_wins > team2_wins


class TestScorelines:

    @pytest.mark.parametrize("total, margin, expected", [
        (2.5, 0.0, (1, 1)),
        (3.0, 1.0, (2, 1)),
        (3.0, 0.0, (2, 2)),
        (1.0, -1.0, (0, 1)),
    ])
    def test_project_scoreline_rounds_half_up(self, total, margin, expected):
        assert project_scoreline(total, margin) == expected

    def test_alternative_scores(self):
        alternatives = generate_alternative_scores(1, 1, 2.0, 0.0, 'Home', 'Away')
        assert [(a.team1_score, a.team2_score) for a in alternatives] == [(2, 2), (2, 1), (1, 2)]
        assert alternatives[0].probability == 60
        assert alternatives[1].description == 'More goals for Home'

    def test_alternative_scores_floor(self):
        alternatives = generate_alternative_scores(0, 0, 0.5, 0.0, top_n=7)
        assert len(alternatives) == 7
        assert min(a.probability for a in alternatives) >= 5
        assert all(a.team1_score >= 0 and a.team2_score >= 0 for a in alternatives)
