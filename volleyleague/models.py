"""
Data models for the league backend.
Domain objects only; no persistence or API logic.

A league owns a roster of teams and a fixture list; results are entered per
fixture and the table is always derived from them, never stored.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


# ---------- Scoring mode ----------
class ScoringMode(str, Enum):
    """How results are entered for a league."""
    AGGREGATE_SCORE = "aggregate_score"  # final set count, optional ball totals
    SET_SCORES = "set_scores"            # points per set; set count is derived


class InvalidLeagueConfig(ValueError):
    """League scoring configuration is not usable (sets to win, point values)."""


# ---------- Team ----------
@dataclass(frozen=True)
class Team:
    """
    A team as seen by scheduling and standings.
    availability is free text (e.g. "Tue 19:30, Thu 20") used only to
    suggest a kickoff time for home fixtures.
    """
    id: str
    name: str
    availability: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"id": self.id, "name": self.name}
        if self.availability is not None:
            d["availability"] = self.availability
        return d


# ---------- League configuration ----------
@dataclass(frozen=True)
class LeagueConfig:
    """
    Scoring rules for one league.
    sets_to_win: 2 (best of 3) or 3 (best of 5).
    Losses other than 3-2 never earn points.
    """
    scoring_mode: ScoringMode = ScoringMode.SET_SCORES
    sets_to_win: int = 3
    points_win_30: int = 3
    points_win_31: int = 3
    points_win_32: int = 2
    points_loss_32: int = 1
    has_return_matches: bool = False

    def __post_init__(self) -> None:
        if self.sets_to_win not in (2, 3):
            raise InvalidLeagueConfig(f"sets_to_win must be 2 or 3 (got {self.sets_to_win})")
        for name in ("points_win_30", "points_win_31", "points_win_32", "points_loss_32"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise InvalidLeagueConfig(f"{name} must be a non-negative integer (got {value!r})")

    @property
    def max_sets(self) -> int:
        """Longest possible match: 3 sets for best of 3, 5 for best of 5."""
        return 2 * self.sets_to_win - 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "scoring_mode": self.scoring_mode.value,
            "sets_to_win": self.sets_to_win,
            "points_win_30": self.points_win_30,
            "points_win_31": self.points_win_31,
            "points_win_32": self.points_win_32,
            "points_loss_32": self.points_loss_32,
            "has_return_matches": self.has_return_matches,
        }


# ---------- Match result ----------
@dataclass(frozen=True)
class SetScore:
    """Points per side in one played set."""
    home: int
    away: int

    def to_dict(self) -> dict[str, int]:
        return {"home": self.home, "away": self.away}


@dataclass(frozen=True)
class MatchResult:
    """
    Validated outcome of one fixture.
    set_scores is empty in AGGREGATE_SCORE mode; a None entry is a set that
    was not played. Ball totals are only tracked in AGGREGATE_SCORE mode.
    League points are None while the match is undecided (still in progress).
    """
    sets_home: int
    sets_away: int
    set_scores: tuple[SetScore | None, ...] = ()
    home_points: int | None = None
    away_points: int | None = None
    home_league_points: int | None = None
    away_league_points: int | None = None

    @property
    def decided(self) -> bool:
        return self.home_league_points is not None and self.away_league_points is not None

    @property
    def winner(self) -> str | None:
        """'home', 'away', or None for an undecided match."""
        if not self.decided:
            return None
        return "home" if self.sets_home > self.sets_away else "away"

    def to_dict(self) -> dict[str, Any]:
        return {
            "sets_home": self.sets_home,
            "sets_away": self.sets_away,
            "set_scores": [s.to_dict() if s is not None else None for s in self.set_scores],
            "home_points": self.home_points,
            "away_points": self.away_points,
            "home_league_points": self.home_league_points,
            "away_league_points": self.away_league_points,
            "decided": self.decided,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> MatchResult:
        return cls(
            sets_home=d["sets_home"],
            sets_away=d["sets_away"],
            set_scores=tuple(
                SetScore(home=s["home"], away=s["away"]) if s is not None else None
                for s in d.get("set_scores") or ()
            ),
            home_points=d.get("home_points"),
            away_points=d.get("away_points"),
            home_league_points=d.get("home_league_points"),
            away_league_points=d.get("away_league_points"),
        )


# ---------- Fixture ----------
@dataclass
class Fixture:
    """
    A scheduled match. home/away and round are fixed at generation time;
    only result and order change afterwards.
    id and league_id are assigned by persistence, never by the scheduler.
    """
    home_team_id: str
    away_team_id: str
    round: int
    order: int
    suggested_time: str | None = None  # "HH:MM"
    result: MatchResult | None = None
    id: str | None = None
    league_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "home_team_id": self.home_team_id,
            "away_team_id": self.away_team_id,
            "round": self.round,
            "order": self.order,
            "suggested_time": self.suggested_time,
            "result": self.result.to_dict() if self.result is not None else None,
        }
        if self.id is not None:
            d["id"] = self.id
        if self.league_id is not None:
            d["league_id"] = self.league_id
        return d


@dataclass(frozen=True)
class FixtureOutcome:
    """A result paired with the teams that played it. Input to the standings."""
    home_team_id: str
    away_team_id: str
    result: MatchResult
    fixture_id: str | None = None
    round: int | None = None


# ---------- Standings ----------
class QuotientKind(str, Enum):
    FINITE = "finite"
    INFINITE = "infinite"    # nothing lost, something won
    UNDEFINED = "undefined"  # 0 / 0, ranks and displays as 0


@dataclass(frozen=True)
class Quotient:
    """Won / lost ratio with explicit handling of a zero denominator."""
    kind: QuotientKind
    value: float = 0.0

    @classmethod
    def of(cls, won: int, lost: int) -> Quotient:
        if lost == 0:
            if won > 0:
                return cls(QuotientKind.INFINITE)
            return cls(QuotientKind.UNDEFINED)
        return cls(QuotientKind.FINITE, round(won / lost, 3))

    def sort_key(self) -> tuple[int, float]:
        """Ascending key that puts the best quotient first."""
        if self.kind is QuotientKind.INFINITE:
            return (0, 0.0)
        return (1, -self.value)

    def to_json(self) -> float | str:
        if self.kind is QuotientKind.INFINITE:
            return "inf"
        return self.value


@dataclass
class TableEntry:
    """One row of the league table. Built fresh on every computation."""
    team_id: str
    team_name: str
    played: int = 0
    won: int = 0
    lost: int = 0
    points: int = 0
    sets_won: int = 0
    sets_lost: int = 0
    balls_won: int = 0
    balls_lost: int = 0
    set_quotient: Quotient = field(default_factory=lambda: Quotient(QuotientKind.UNDEFINED))
    ball_quotient: Quotient = field(default_factory=lambda: Quotient(QuotientKind.UNDEFINED))

    @property
    def set_diff(self) -> int:
        return self.sets_won - self.sets_lost

    @property
    def ball_diff(self) -> int:
        return self.balls_won - self.balls_lost

    def to_dict(self) -> dict[str, Any]:
        return {
            "team_id": self.team_id,
            "team_name": self.team_name,
            "played": self.played,
            "won": self.won,
            "lost": self.lost,
            "points": self.points,
            "sets_won": self.sets_won,
            "sets_lost": self.sets_lost,
            "set_diff": self.set_diff,
            "set_quotient": self.set_quotient.to_json(),
            "balls_won": self.balls_won,
            "balls_lost": self.balls_lost,
            "ball_diff": self.ball_diff,
            "ball_quotient": self.ball_quotient.to_json(),
        }


# ---------- League (persisted) ----------
@dataclass
class League:
    """
    A competition container: scoring rules plus the expected team count.
    Fixtures can only be generated once exactly number_of_teams are assigned.
    """
    id: str
    name: str
    number_of_teams: int
    config: LeagueConfig
    created_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "number_of_teams": self.number_of_teams,
            "config": self.config.to_dict(),
            "created_at": self.created_at.isoformat(),
        }
