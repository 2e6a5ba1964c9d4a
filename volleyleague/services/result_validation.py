"""
Result validation and league points for volleyball fixtures.

Two entry modes, picked by the league's ScoringMode:
- AGGREGATE_SCORE: final set count per side (e.g. 3:1), optional ball totals.
- SET_SCORES: points per set; the set count is derived here.

Set rules: 25 points to win a set (15 in the deciding set); at exactly the
minimum the margin must be at least 2, beyond it exactly 2. Once a side has
won sets_to_win sets, nothing may follow.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from volleyleague.models import LeagueConfig, MatchResult, ScoringMode, SetScore

logger = logging.getLogger(__name__)

SET_MIN_POINTS = 25
DECIDING_SET_MIN_POINTS = 15
SET_WIN_MARGIN = 2

RawValue = int | str | None


class InvalidScore(ValueError):
    """
    A submitted result breaks a scoring rule.
    field names the offending input ("home_score", "set_3", ...) so the caller
    can point the user at it; str(exc) is the user-facing reason.
    """

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


@dataclass
class RawScoreInput:
    """
    Unvalidated result as typed by a user.
    Values may be ints, numeric strings or blanks; None and "" mean absent.
    set_scores holds (home, away) pairs in set order.
    """
    home_score: RawValue = None
    away_score: RawValue = None
    home_points: RawValue = None
    away_points: RawValue = None
    set_scores: list[tuple[RawValue, RawValue]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> RawScoreInput:
        """Accepts set_scores as [{"home": .., "away": ..}] or [[home, away]]."""
        sets: list[tuple[RawValue, RawValue]] = []
        for index, item in enumerate(d.get("set_scores") or [], start=1):
            if isinstance(item, dict):
                sets.append((item.get("home"), item.get("away")))
                continue
            try:
                home, away = item
            except (TypeError, ValueError):
                raise InvalidScore(
                    f"set_{index}", f"Set {index}: expected a home and an away value (got {item!r})"
                ) from None
            sets.append((home, away))
        return cls(
            home_score=d.get("home_score"),
            away_score=d.get("away_score"),
            home_points=d.get("home_points"),
            away_points=d.get("away_points"),
            set_scores=sets,
        )


# ---------- Value parsing ----------


def _is_absent(value: RawValue) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _parse_count(value: RawValue, field_name: str, label: str) -> int:
    """Non-negative integer or InvalidScore. Absent values must be handled by the caller."""
    if isinstance(value, bool):
        raise InvalidScore(field_name, f"{label}: only non-negative whole numbers are allowed")
    if isinstance(value, int):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = int(value.strip())
        except ValueError:
            raise InvalidScore(
                field_name, f"{label}: only non-negative whole numbers are allowed (got {value!r})"
            ) from None
    else:
        raise InvalidScore(field_name, f"{label}: only non-negative whole numbers are allowed")
    if parsed < 0:
        raise InvalidScore(field_name, f"{label}: only non-negative whole numbers are allowed (got {parsed})")
    return parsed


def _optional_count(value: RawValue, field_name: str, label: str) -> int | None:
    if _is_absent(value):
        return None
    return _parse_count(value, field_name, label)


# ---------- League points ----------


def league_points(sets_home: int, sets_away: int, config: LeagueConfig) -> tuple[int, int] | None:
    """
    (home, away) league points for a final set count, or None if undecided.
    Winner: points_win_30 / points_win_31 / points_win_32 by sets conceded.
    Loser: points_loss_32 for a 2-set loss, otherwise nothing.
    """
    home_won = sets_home == config.sets_to_win and sets_away < config.sets_to_win
    away_won = sets_away == config.sets_to_win and sets_home < config.sets_to_win
    if not (home_won or away_won):
        return None
    conceded = sets_away if home_won else sets_home
    if conceded == 0:
        winner_pts, loser_pts = config.points_win_30, 0
    elif conceded == 1:
        winner_pts, loser_pts = config.points_win_31, 0
    else:
        winner_pts, loser_pts = config.points_win_32, config.points_loss_32
    return (winner_pts, loser_pts) if home_won else (loser_pts, winner_pts)


def _with_points(result: MatchResult, config: LeagueConfig) -> MatchResult:
    points = league_points(result.sets_home, result.sets_away, config)
    if points is None:
        return result
    return MatchResult(
        sets_home=result.sets_home,
        sets_away=result.sets_away,
        set_scores=result.set_scores,
        home_points=result.home_points,
        away_points=result.away_points,
        home_league_points=points[0],
        away_league_points=points[1],
    )


# ---------- AGGREGATE_SCORE ----------


def _validate_aggregate(raw: RawScoreInput, config: LeagueConfig) -> MatchResult:
    if _is_absent(raw.home_score) or _is_absent(raw.away_score):
        missing = "home_score" if _is_absent(raw.home_score) else "away_score"
        raise InvalidScore(missing, "Both the home and the away set count must be entered")
    sets_home = _parse_count(raw.home_score, "home_score", "Home sets")
    sets_away = _parse_count(raw.away_score, "away_score", "Away sets")
    target = config.sets_to_win
    if not ((sets_home == target and sets_away < target) or (sets_away == target and sets_home < target)):
        raise InvalidScore(
            "score",
            f"Invalid final score {sets_home}:{sets_away}: exactly one team must win {target} sets, "
            f"the other fewer",
        )
    return MatchResult(
        sets_home=sets_home,
        sets_away=sets_away,
        home_points=_optional_count(raw.home_points, "home_points", "Home ball points"),
        away_points=_optional_count(raw.away_points, "away_points", "Away ball points"),
    )


# ---------- SET_SCORES ----------


def _check_set(index: int, home: int, away: int, config: LeagueConfig) -> None:
    """Volleyball legality of one played set. index is 1-based."""
    min_points = DECIDING_SET_MIN_POINTS if index == config.max_sets else SET_MIN_POINTS
    winner = max(home, away)
    loser = min(home, away)
    field_name = f"set_{index}"
    if home == away:
        raise InvalidScore(field_name, f"Set {index}: a set cannot end in a tie ({home}:{away})")
    if winner < min_points:
        raise InvalidScore(
            field_name,
            f"Set {index}: winning side must reach at least {min_points} points (got {winner})",
        )
    if winner == min_points and winner - loser < SET_WIN_MARGIN:
        raise InvalidScore(
            field_name,
            f"Set {index}: at {min_points} points the margin must be at least {SET_WIN_MARGIN} "
            f"({home}:{away})",
        )
    if winner > min_points and winner - loser != SET_WIN_MARGIN:
        raise InvalidScore(
            field_name,
            f"Set {index}: beyond {min_points} points the margin must be exactly {SET_WIN_MARGIN} "
            f"({home}:{away})",
        )


def _parse_set(index: int, pair: Sequence[RawValue]) -> SetScore | None:
    """None for a set that was not played; both-or-neither otherwise."""
    home_raw, away_raw = pair
    field_name = f"set_{index}"
    if _is_absent(home_raw) and _is_absent(away_raw):
        return None
    if _is_absent(home_raw) or _is_absent(away_raw):
        raise InvalidScore(field_name, f"Set {index}: both home and away points must be entered")
    home = _parse_count(home_raw, field_name, f"Set {index}")
    away = _parse_count(away_raw, field_name, f"Set {index}")
    if home == 0 and away == 0:
        # Legacy placeholder for "not entered yet"; treated as not played
        return None
    return SetScore(home=home, away=away)


def _validate_sets(raw: RawScoreInput, config: LeagueConfig) -> MatchResult:
    entries = raw.set_scores
    if len(entries) > config.max_sets:
        raise InvalidScore(
            "set_scores", f"At most {config.max_sets} sets can be entered (got {len(entries)})"
        )
    parsed = [_parse_set(i, pair) for i, pair in enumerate(entries, start=1)]

    sets_home = sets_away = 0
    decided_in: int | None = None
    gap_at: int | None = None
    for index, score in enumerate(parsed, start=1):
        if score is None:
            if gap_at is None:
                gap_at = index
            continue
        if decided_in is not None:
            raise InvalidScore(
                f"set_{index}",
                f"Set {index}: match already decided in set {decided_in}; later sets must be empty",
            )
        if gap_at is not None:
            raise InvalidScore(
                f"set_{index}", f"Set {index}: entered after set {gap_at}, which was not played"
            )
        _check_set(index, score.home, score.away, config)
        if score.home > score.away:
            sets_home += 1
        else:
            sets_away += 1
        if config.sets_to_win in (sets_home, sets_away):
            decided_in = index

    if decided_in is None and len(parsed) == config.max_sets:
        raise InvalidScore(
            "set_scores",
            f"Invalid result after {config.max_sets} sets ({sets_home}:{sets_away}): "
            f"one team must win {config.sets_to_win} sets",
        )
    played = tuple(parsed[: decided_in if decided_in is not None else len(parsed)])
    # Trailing unplayed sets carry no information
    while played and played[-1] is None:
        played = played[:-1]
    return MatchResult(sets_home=sets_home, sets_away=sets_away, set_scores=played)


# ---------- Entry point ----------

_VALIDATORS: dict[ScoringMode, Callable[[RawScoreInput, LeagueConfig], MatchResult]] = {
    ScoringMode.AGGREGATE_SCORE: _validate_aggregate,
    ScoringMode.SET_SCORES: _validate_sets,
}


def validate_result(raw: RawScoreInput, config: LeagueConfig) -> MatchResult:
    """
    Validate raw input against the league's scoring mode and derive the
    normalized result with league points. Undecided SET_SCORES input (match
    still in progress) is returned without league points.
    Raises InvalidScore naming the offending set or field.
    """
    validator = _VALIDATORS[config.scoring_mode]
    result = _with_points(validator(raw, config), config)
    if not result.decided:
        logger.debug("Accepted in-progress result %d:%d", result.sets_home, result.sets_away)
    return result
