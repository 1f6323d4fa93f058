"""
Match Record Store
==================
Holds the three match series used by the analyzer:

- head-to-head matches between the two analyzed teams
- team 1's recent matches against other opponents
- team 2's recent matches against other opponents

Scores are stored normalized as (self_score, opponent_score, category). The
team1_score / team2_score views put team 2's own score in the team-2 slot for
its series, so cross-category formulas can always read "team 1's goals" and
"team 2's goals" from the same attributes.
"""

import logging
import numbers
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from exceptions import ValidationError
from model_config import MatchConfiguration, SpreadDirection

logger = logging.getLogger(__name__)


class MatchCategory(str, Enum):
    H2H = 'h2h'
    TEAM1_SERIES = 'team1'
    TEAM2_SERIES = 'team2'


class MatchOutcome(str, Enum):
    TEAM1_WINS = 'team1_wins'
    TEAM2_WINS = 'team2_wins'
    DRAW = 'draw'
    OPPONENT_WINS = 'opponent_wins'  # only in the per-team series


class SpreadCover(str, Enum):
    FAVORITE_COVERED = 'favorite_covered'
    UNDERDOG_COVERED = 'underdog_covered'
    PUSH = 'push'


@dataclass(frozen=True)
class MatchRecord:
    """One observed game."""
    category: MatchCategory
    match_number: int  # 1-based position within its category
    self_score: int  # team 1 for H2H, the named team for a series
    opponent_score: int
    outcome: MatchOutcome
    timestamp: int  # relative recency slot, higher = more recent
    sequence: int  # ingestion order, breaks timestamp ties across categories
    total_over_line: Optional[bool] = None
    spread_cover: Optional[SpreadCover] = None

    @property
    def team1_score(self) -> int:
        if self.category == MatchCategory.TEAM2_SERIES:
            return self.opponent_score
        return self.self_score

    @property
    def team2_score(self) -> int:
        if self.category == MatchCategory.TEAM2_SERIES:
            return self.self_score
        return self.opponent_score

    @property
    def total_score(self) -> int:
        return self.self_score + self.opponent_score

    @property
    def margin_of_victory(self) -> int:
        return abs(self.team1_score - self.team2_score)

    @property
    def goal_efficiency(self) -> float:
        total = self.total_score
        return max(self.team1_score, self.team2_score) / total if total > 0 else 0.5

    @property
    def clean_sheet(self) -> bool:
        return self.team1_score == 0 or self.team2_score == 0

    @property
    def recency_key(self) -> Tuple[int, int]:
        return self.timestamp, self.sequence


@dataclass(frozen=True)
class IngestResult:
    """Outcome of an ingestion action."""
    count: int
    warning: Optional[str] = None


def determine_outcome(category: MatchCategory, team1_score: int, team2_score: int) -> MatchOutcome:
    """
    Label a result from the team-1 / team-2 slot scores.

    In a per-team series the unnamed side can only ever be the opponent.
    """
    if team1_score == team2_score:
        return MatchOutcome.DRAW

    if category == MatchCategory.H2H:
        return MatchOutcome.TEAM1_WINS if team1_score > team2_score else MatchOutcome.TEAM2_WINS
    if category == MatchCategory.TEAM1_SERIES:
        return MatchOutcome.TEAM1_WINS if team1_score > team2_score else MatchOutcome.OPPONENT_WINS
    return MatchOutcome.OPPONENT_WINS if team1_score > team2_score else MatchOutcome.TEAM2_WINS


def calculate_spread_cover(team1_score: int, team2_score: int,
                           point_spread: float,
                           spread_direction: SpreadDirection) -> Optional[SpreadCover]:
    """
    Decide whether the favorite covered the point spread.

    Args:
        team1_score: Team-1 slot score
        team2_score: Team-2 slot score
        point_spread: Spread given to the favorite (0 = unset)
        spread_direction: Which team is favored

    Returns:
        SpreadCover, or None when no spread is set
    """
    if point_spread <= 0:
        return None

    if spread_direction == SpreadDirection.TEAM1:
        adjusted_score = team1_score - point_spread
        opposing_score = team2_score
    else:
        adjusted_score = team2_score - point_spread
        opposing_score = team1_score

    if adjusted_score > opposing_score:
        return SpreadCover.FAVORITE_COVERED
    elif adjusted_score < opposing_score:
        return SpreadCover.UNDERDOG_COVERED
    return SpreadCover.PUSH


def apply_betting_lines(record: MatchRecord, config: MatchConfiguration) -> MatchRecord:
    """Recompute only the line-dependent flags of a record."""
    total_over_line = record.total_score > config.total_line if config.has_total_line else None
    spread_cover = calculate_spread_cover(
        record.team1_score, record.team2_score, config.point_spread, config.spread_direction
    )
    return replace(record, total_over_line=total_over_line, spread_cover=spread_cover)


def derive_match_record(category: MatchCategory, match_number: int,
                        score1: int, score2: int,
                        timestamp: int, sequence: int,
                        config: MatchConfiguration) -> MatchRecord:
    """
    Build a fully populated record from a raw score pair.

    Args:
        category: Series the match belongs to
        match_number: 1-based position in the series
        score1: The category's own team score (team 1 for H2H)
        score2: The other side's score (team 2 for H2H, else the opponent)
        timestamp: Recency slot
        sequence: Global ingestion counter
        config: Current configuration (betting lines)

    Returns:
        MatchRecord with outcome and line flags set
    """
    category = MatchCategory(category)
    if category == MatchCategory.TEAM2_SERIES:
        team1_score, team2_score = score2, score1
    else:
        team1_score, team2_score = score1, score2

    record = MatchRecord(
        category=category,
        match_number=match_number,
        self_score=score1,
        opponent_score=score2,
        outcome=determine_outcome(category, team1_score, team2_score),
        timestamp=timestamp,
        sequence=sequence,
    )
    return apply_betting_lines(record, config)


def validate_scores(scores1: Sequence[int], scores2: Sequence[int]) -> Optional[str]:
    """
    Validate a pair of score arrays.

    Returns:
        A truncation warning when the arrays differ in length, else None

    Raises:
        ValidationError: For non-integer, negative or missing scores
    """
    for scores in (scores1, scores2):
        if any(isinstance(s, bool) or not isinstance(s, numbers.Integral) for s in scores):
            raise ValidationError("Please enter valid scores (numbers only)", field='scores')
        if any(s < 0 for s in scores):
            raise ValidationError("Scores must be non-negative", field='scores')
        if len(scores) == 0:
            raise ValidationError("Please enter at least one score for each team", field='scores')

    if len(scores1) != len(scores2):
        min_length = min(len(scores1), len(scores2))
        return f"Unequal arrays. Will use the first {min_length} scores from each."
    return None


def sort_by_recency(matches: Iterable[MatchRecord], newest_first: bool = False) -> List[MatchRecord]:
    """Order matches by (timestamp, sequence)."""
    return sorted(matches, key=lambda m: m.recency_key, reverse=newest_first)


@dataclass(frozen=True)
class MatchDataSnapshot:
    """Immutable copy of the three series taken at the start of an analysis."""
    h2h: Tuple[MatchRecord, ...] = ()
    team1: Tuple[MatchRecord, ...] = ()
    team2: Tuple[MatchRecord, ...] = ()

    @property
    def total_matches(self) -> int:
        return len(self.h2h) + len(self.team1) + len(self.team2)

    def series(self, category: MatchCategory) -> Tuple[MatchRecord, ...]:
        category = MatchCategory(category)
        if category == MatchCategory.H2H:
            return self.h2h
        if category == MatchCategory.TEAM1_SERIES:
            return self.team1
        return self.team2

    def own_series(self, is_team1: bool) -> Tuple[MatchRecord, ...]:
        return self.team1 if is_team1 else self.team2

    def team_matches(self, is_team1: bool) -> List[MatchRecord]:
        """H2H matches followed by the team's own series."""
        return list(self.h2h) + list(self.own_series(is_team1))

    def all_matches(self) -> List[MatchRecord]:
        return list(self.h2h) + list(self.team1) + list(self.team2)


class MatchStore:
    """
    Process-wide store of the three match series.

    Re-ingesting a category replaces its whole series. A lock guards every
    mutation and the snapshot copy, so an analysis never sees a half-written
    series.
    """

    def __init__(self):
        self._series: Dict[MatchCategory, List[MatchRecord]] = {
            category: [] for category in MatchCategory
        }
        self._sequence = 0
        self._lock = threading.Lock()

    @property
    def total_match_count(self) -> int:
        with self._lock:
            return sum(len(matches) for matches in self._series.values())

    def count(self, category: MatchCategory) -> int:
        with self._lock:
            return len(self._series[MatchCategory(category)])

    def matches(self, category: MatchCategory) -> Tuple[MatchRecord, ...]:
        with self._lock:
            return tuple(self._series[MatchCategory(category)])

    def ingest(self, category: MatchCategory,
               scores1: Sequence[int], scores2: Sequence[int],
               config: MatchConfiguration,
               timestamps: Optional[Sequence[int]] = None) -> IngestResult:
        """
        Replace a category's series with new score pairs.

        Args:
            category: Series to replace
            scores1: The category's own team scores (team 1 for H2H)
            scores2: The other side's scores
            config: Current configuration (betting lines)
            timestamps: Optional recency slots, oldest first. Defaults to
                -n .. -1 so the newest match of every series is the most recent.

        Returns:
            IngestResult with the number of matches added and any warning

        Raises:
            ValidationError: For invalid scores or too few timestamps
        """
        try:
            category = MatchCategory(category)
        except ValueError:
            raise ValidationError(f"Unknown match category: {category!r}", field='category')

        scores1 = list(scores1)
        scores2 = list(scores2)
        warning = validate_scores(scores1, scores2)
        min_length = min(len(scores1), len(scores2))

        if timestamps is None:
            timestamps = [i - min_length for i in range(min_length)]
        else:
            timestamps = list(timestamps)
            if len(timestamps) < min_length:
                raise ValidationError(
                    f"Expected {min_length} timestamps, got {len(timestamps)}", field='timestamps'
                )
            if any(isinstance(t, bool) or not isinstance(t, numbers.Integral) for t in timestamps):
                raise ValidationError("Timestamps must be whole numbers", field='timestamps')

        with self._lock:
            records = []
            for i in range(min_length):
                self._sequence += 1
                records.append(derive_match_record(
                    category, i + 1, scores1[i], scores2[i],
                    timestamps[i], self._sequence, config
                ))
            self._series[category] = sort_by_recency(records)

        if warning:
            logger.warning(f"{category.value}: {warning}")
        logger.info(f"Added {min_length} {category.value} matches")
        return IngestResult(count=min_length, warning=warning)

    def apply_betting_lines(self, config: MatchConfiguration):
        """Recompute over-line and spread-cover flags on every stored record."""
        with self._lock:
            for category, matches in self._series.items():
                self._series[category] = [apply_betting_lines(m, config) for m in matches]

    def reset(self):
        with self._lock:
            for category in MatchCategory:
                self._series[category] = []
        logger.info("All match data has been cleared")

    def snapshot(self) -> MatchDataSnapshot:
        with self._lock:
            return MatchDataSnapshot(
                h2h=tuple(self._series[MatchCategory.H2H]),
                team1=tuple(self._series[MatchCategory.TEAM1_SERIES]),
                team2=tuple(self._series[MatchCategory.TEAM2_SERIES]),
            )
