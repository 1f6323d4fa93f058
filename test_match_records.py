"""
Tests for the Match Record Store
================================
Per-match derivation, ingestion rules and line-flag recomputation.
"""

import pytest

from exceptions import ValidationError
from match_records import (
    MatchCategory,
    MatchOutcome,
    MatchStore,
    SpreadCover,
    calculate_spread_cover,
    derive_match_record,
    sort_by_recency,
)
from model_config import MatchConfiguration, SpreadDirection


class TestDerivation:
    """Raw score pair -> MatchRecord."""

    def test_h2h_outcomes(self):
        config = MatchConfiguration()
        assert derive_match_record('h2h', 1, 2, 1, -1, 1, config).outcome == MatchOutcome.TEAM1_WINS
        assert derive_match_record('h2h', 1, 0, 1, -1, 1, config).outcome == MatchOutcome.TEAM2_WINS
        assert derive_match_record('h2h', 1, 2, 2, -1, 1, config).outcome == MatchOutcome.DRAW

    def test_team1_series_loss_is_opponent_win(self):
        record = derive_match_record(MatchCategory.TEAM1_SERIES, 1, 0, 3, -1, 1, MatchConfiguration())
        assert record.outcome == MatchOutcome.OPPONENT_WINS
        assert record.team1_score == 0
        assert record.team2_score == 3

    def test_team2_series_swaps_slots(self):
        """Team 2's own score lands in the team-2 slot."""
        record = derive_match_record(MatchCategory.TEAM2_SERIES, 1, 3, 1, -1, 1, MatchConfiguration())
        assert record.team2_score == 3
        assert record.team1_score == 1
        assert record.self_score == 3
        assert record.outcome == MatchOutcome.TEAM2_WINS

    def test_derived_fields(self):
        record = derive_match_record('h2h', 1, 3, 0, -1, 1, MatchConfiguration())
        assert record.total_score == 3
        assert record.margin_of_victory == 3
        assert record.goal_efficiency == 1.0
        assert record.clean_sheet

    def test_goalless_efficiency_is_half(self):
        record = derive_match_record('h2h', 1, 0, 0, -1, 1, MatchConfiguration())
        assert record.goal_efficiency == 0.5
        assert record.clean_sheet

    def test_no_lines_leave_flags_unset(self):
        record = derive_match_record('h2h', 1, 3, 2, -1, 1, MatchConfiguration())
        assert record.total_over_line is None
        assert record.spread_cover is None

    def test_lines_set_flags(self):
        config = MatchConfiguration(total_line=2.5, point_spread=1.0)
        record = derive_match_record('h2h', 1, 3, 1, -1, 1, config)
        assert record.total_over_line is True
        assert record.spread_cover == SpreadCover.FAVORITE_COVERED


class TestSpreadCover:

    def test_favorite_covered(self):
        assert calculate_spread_cover(3, 1, 1.0, SpreadDirection.TEAM1) == SpreadCover.FAVORITE_COVERED

    def test_push(self):
        assert calculate_spread_cover(2, 1, 1.0, SpreadDirection.TEAM1) == SpreadCover.PUSH

    def test_underdog_covered(self):
        assert calculate_spread_cover(1, 1, 1.0, SpreadDirection.TEAM1) == SpreadCover.UNDERDOG_COVERED

    def test_team2_favored(self):
        assert calculate_spread_cover(0, 2, 1.0, SpreadDirection.TEAM2) == SpreadCover.FAVORITE_COVERED
        assert calculate_spread_cover(1, 1, 1.5, SpreadDirection.TEAM2) == SpreadCover.UNDERDOG_COVERED

    def test_unset_spread(self):
        assert calculate_spread_cover(3, 0, 0.0, SpreadDirection.TEAM1) is None


class TestMatchStore:

    def test_ingest_counts(self):
        store = MatchStore()
        result = store.ingest('h2h', [1, 2, 1], [1, 0, 2], MatchConfiguration())
        assert result.count == 3
        assert result.warning is None
        assert store.count(MatchCategory.H2H) == 3
        assert store.total_match_count == 3

    def test_unequal_arrays_truncate_with_warning(self):
        store = MatchStore()
        result = store.ingest('team1', [1, 2, 3], [0, 1], MatchConfiguration())
        assert result.count == 2
        assert "first 2 scores" in result.warning
        assert [m.self_score for m in store.matches('team1')] == [1, 2]

    def test_reingest_replaces_series(self):
        store = MatchStore()
        store.ingest('team2', [1, 2, 3], [0, 0, 0], MatchConfiguration())
        store.ingest('team2', [4], [4], MatchConfiguration())
        matches = store.matches('team2')
        assert len(matches) == 1
        assert matches[0].self_score == 4

    @pytest.mark.parametrize("scores1, scores2", [
        ([1, -2], [0, 1]),
        ([1, 2.5], [0, 1]),
        ([True, 1], [0, 1]),
        ([], [0, 1]),
        ([1, 2], []),
    ])
    def test_invalid_scores_rejected(self, scores1, scores2):
        store = MatchStore()
        store.ingest('h2h', [1], [0], MatchConfiguration())
        with pytest.raises(ValidationError):
            store.ingest('h2h', scores1, scores2, MatchConfiguration())
        # Rejected input leaves the previous series untouched
        assert store.count('h2h') == 1

    def test_unknown_category(self):
        with pytest.raises(ValidationError):
            MatchStore().ingest('friendly', [1], [0], MatchConfiguration())

    def test_default_timestamps_newest_last(self):
        store = MatchStore()
        store.ingest('h2h', [1, 2, 3], [0, 0, 0], MatchConfiguration())
        matches = store.matches('h2h')
        assert [m.timestamp for m in matches] == [-3, -2, -1]
        assert [m.match_number for m in matches] == [1, 2, 3]

    def test_explicit_timestamps_sorted(self):
        store = MatchStore()
        store.ingest('h2h', [1, 2, 3], [0, 0, 0], MatchConfiguration(), timestamps=[30, 10, 20])
        assert [m.self_score for m in store.matches('h2h')] == [2, 3, 1]

    def test_too_few_timestamps(self):
        with pytest.raises(ValidationError):
            MatchStore().ingest('h2h', [1, 2], [0, 0], MatchConfiguration(), timestamps=[1])

    @pytest.mark.parametrize("timestamps", [
        [None, 'x'],
        [1, 2.5],
        ['1', '2'],
        [True, False],
    ])
    def test_non_integer_timestamps(self, timestamps):
        store = MatchStore()
        store.ingest('h2h', [4], [4], MatchConfiguration())
        with pytest.raises(ValidationError) as exc_info:
            store.ingest('h2h', [1, 2], [0, 0], MatchConfiguration(), timestamps=timestamps)
        assert exc_info.value.field == 'timestamps'
        assert [m.self_score for m in store.matches('h2h')] == [4]

    def test_sequence_breaks_timestamp_ties(self):
        """Later ingestion is newer when slots collide across categories."""
        store = MatchStore()
        store.ingest('h2h', [1], [0], MatchConfiguration())
        store.ingest('team1', [5], [0], MatchConfiguration())
        newest = sort_by_recency(store.snapshot().all_matches(), newest_first=True)[0]
        assert newest.category == MatchCategory.TEAM1_SERIES

    def test_apply_betting_lines_recomputes_every_category(self):
        store = MatchStore()
        config = MatchConfiguration()
        store.ingest('h2h', [2, 1], [2, 0], config)
        store.ingest('team1', [3], [1], config)
        store.ingest('team2', [0], [0], config)

        store.apply_betting_lines(config.updated(total_line=2.5, point_spread=1.0))

        h2h = store.matches('h2h')
        assert [m.total_over_line for m in h2h] == [True, False]
        assert [m.spread_cover for m in h2h] == [SpreadCover.UNDERDOG_COVERED, SpreadCover.PUSH]
        assert store.matches('team1')[0].total_over_line is True
        assert store.matches('team2')[0].total_over_line is False
        # Outcomes are not touched
        assert h2h[0].outcome == MatchOutcome.DRAW

    def test_reset(self):
        store = MatchStore()
        store.ingest('h2h', [1], [0], MatchConfiguration())
        store.ingest('team1', [1], [0], MatchConfiguration())
        store.reset()
        assert store.total_match_count == 0

    def test_snapshot_is_detached(self):
        store = MatchStore()
        store.ingest('h2h', [1], [0], MatchConfiguration())
        snapshot = store.snapshot()
        store.ingest('h2h', [2, 2], [0, 0], MatchConfiguration())
        assert len(snapshot.h2h) == 1
        assert isinstance(snapshot.h2h, tuple)
