"""
League table computation.

The table is derived from scratch on every call from the roster and the
decided results; nothing is stored or updated incrementally.

Ranking, each step only breaking ties left by the previous one:
league points, wins, set difference, set quotient, ball difference,
ball quotient (an unbeaten quotient ranks above any finite one), team name.
"""
from __future__ import annotations

import logging
from typing import Iterable, Sequence

from volleyleague.models import (
    FixtureOutcome,
    LeagueConfig,
    Quotient,
    TableEntry,
    Team,
)
from volleyleague.services.result_validation import league_points

logger = logging.getLogger(__name__)


class UnknownTeamReference(LookupError):
    """An outcome names a team that is not on the league roster."""

    def __init__(self, team_id: str, fixture_id: str | None = None) -> None:
        where = f"Fixture {fixture_id}" if fixture_id else "Outcome"
        super().__init__(f"{where} references team {team_id!r}, which is not in the league")
        self.team_id = team_id
        self.fixture_id = fixture_id


def _apply_outcome(
    table: dict[str, TableEntry], outcome: FixtureOutcome, points: tuple[int, int]
) -> None:
    for team_id in (outcome.home_team_id, outcome.away_team_id):
        if team_id not in table:
            raise UnknownTeamReference(team_id, outcome.fixture_id)
    res = outcome.result
    home = table[outcome.home_team_id]
    away = table[outcome.away_team_id]

    home.played += 1
    away.played += 1

    home_balls = res.home_points or 0
    away_balls = res.away_points or 0
    home.balls_won += home_balls
    home.balls_lost += away_balls
    away.balls_won += away_balls
    away.balls_lost += home_balls

    home.sets_won += res.sets_home
    home.sets_lost += res.sets_away
    away.sets_won += res.sets_away
    away.sets_lost += res.sets_home

    if res.sets_home > res.sets_away:
        home.won += 1
        away.lost += 1
    else:
        away.won += 1
        home.lost += 1

    home.points += points[0]
    away.points += points[1]


def _sort_key(entry: TableEntry) -> tuple:
    return (
        -entry.points,
        -entry.won,
        -entry.set_diff,
        entry.set_quotient.sort_key(),
        -entry.ball_diff,
        entry.ball_quotient.sort_key(),
        entry.team_name,
    )


def sort_table(entries: Iterable[TableEntry]) -> list[TableEntry]:
    return sorted(entries, key=_sort_key)


def compute_standings(
    teams: Sequence[Team],
    config: LeagueConfig,
    outcomes: Iterable[FixtureOutcome],
    up_to_round: int | None = None,
) -> list[TableEntry]:
    """
    Build the sorted table for teams from decided outcomes.
    up_to_round limits the table to results from rounds 1..up_to_round
    (outcomes without a round are always counted).
    Never raises for bad outcomes: unknown teams and undecided results are
    logged and skipped.
    """
    table: dict[str, TableEntry] = {t.id: TableEntry(team_id=t.id, team_name=t.name) for t in teams}

    for outcome in outcomes:
        if up_to_round is not None and outcome.round is not None and outcome.round > up_to_round:
            continue
        res = outcome.result
        points = league_points(res.sets_home, res.sets_away, config)
        if points is None:
            logger.debug("Skipping undecided outcome %s", outcome.fixture_id or "")
            continue
        try:
            _apply_outcome(table, outcome, points)
        except UnknownTeamReference as e:
            logger.warning("%s; skipping it for the table", e)

    for entry in table.values():
        entry.set_quotient = Quotient.of(entry.sets_won, entry.sets_lost)
        entry.ball_quotient = Quotient.of(entry.balls_won, entry.balls_lost)

    return sort_table(table.values())
