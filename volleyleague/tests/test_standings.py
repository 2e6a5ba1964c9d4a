"""
Tests for the league table: aggregation, tie-break cascade, quotients.
"""
from __future__ import annotations

import logging

import pytest

from volleyleague.models import (
    FixtureOutcome,
    LeagueConfig,
    MatchResult,
    Quotient,
    QuotientKind,
    ScoringMode,
    TableEntry,
    Team,
)
from volleyleague.services.standings import compute_standings, sort_table

CONFIG = LeagueConfig()
AGG_CONFIG = LeagueConfig(scoring_mode=ScoringMode.AGGREGATE_SCORE)


@pytest.fixture
def teams():
    return [
        Team(id="A", name="Adler"),
        Team(id="B", name="Bären"),
        Team(id="C", name="Condors"),
        Team(id="D", name="Delfine"),
    ]


def _outcome(home, away, sets_home, sets_away, balls=None, round=None, fixture_id=None):
    home_points, away_points = balls if balls else (None, None)
    return FixtureOutcome(
        home_team_id=home,
        away_team_id=away,
        result=MatchResult(
            sets_home=sets_home,
            sets_away=sets_away,
            home_points=home_points,
            away_points=away_points,
        ),
        fixture_id=fixture_id,
        round=round,
    )


def _ids(entries):
    return [e.team_id for e in entries]


# ---------- Aggregation ----------


def test_empty_table_lists_every_team_by_name(teams):
    table = compute_standings(list(reversed(teams)), CONFIG, [])
    assert _ids(table) == ["A", "B", "C", "D"]
    assert all(e.played == 0 and e.points == 0 for e in table)
    assert table[0].set_quotient.kind is QuotientKind.UNDEFINED
    assert table[0].to_dict()["set_quotient"] == 0.0


def test_counts_and_points_from_results(teams):
    outcomes = [
        _outcome("A", "B", 3, 2),
        _outcome("C", "D", 1, 3),
        _outcome("A", "C", 3, 0),
    ]
    table = {e.team_id: e for e in compute_standings(teams, CONFIG, outcomes)}

    a = table["A"]
    assert (a.played, a.won, a.lost, a.points) == (2, 2, 0, 5)
    assert (a.sets_won, a.sets_lost) == (6, 2)

    b = table["B"]
    assert (b.played, b.won, b.lost, b.points) == (1, 0, 1, 1)

    c = table["C"]
    assert (c.played, c.won, c.lost, c.points) == (2, 0, 2, 0)
    assert (c.sets_won, c.sets_lost) == (1, 6)

    d = table["D"]
    assert (d.played, d.won, d.lost, d.points) == (1, 1, 0, 3)
    assert d.set_quotient == Quotient.of(3, 1)


def test_totals_are_consistent(teams):
    outcomes = [
        _outcome("A", "B", 3, 2),
        _outcome("C", "D", 1, 3),
        _outcome("A", "C", 3, 0),
        _outcome("B", "D", 0, 3),
    ]
    table = compute_standings(teams, CONFIG, outcomes)
    assert sum(e.won for e in table) == sum(e.lost for e in table) == len(outcomes)
    assert sum(e.played for e in table) == 2 * len(outcomes)
    assert sum(e.sets_won for e in table) == sum(e.sets_lost for e in table)


def test_computation_is_idempotent(teams):
    outcomes = [_outcome("A", "B", 3, 1), _outcome("C", "D", 3, 2)]
    first = [e.to_dict() for e in compute_standings(teams, CONFIG, outcomes)]
    second = [e.to_dict() for e in compute_standings(teams, CONFIG, outcomes)]
    assert first == second


def test_points_follow_league_config(teams):
    config = LeagueConfig(points_win_30=4, points_win_31=3, points_win_32=2, points_loss_32=1)
    outcomes = [_outcome("A", "B", 3, 0), _outcome("C", "D", 3, 1)]
    table = {e.team_id: e for e in compute_standings(teams, config, outcomes)}
    assert table["A"].points == 4
    assert table["C"].points == 3


# ---------- Skipped input ----------


def test_undecided_results_are_skipped(teams):
    outcomes = [_outcome("A", "B", 2, 0), _outcome("C", "D", 3, 0)]
    table = {e.team_id: e for e in compute_standings(teams, CONFIG, outcomes)}
    assert table["A"].played == 0
    assert table["B"].played == 0
    assert table["C"].played == 1


def test_unknown_team_is_skipped_and_logged(teams, caplog):
    outcomes = [
        _outcome("A", "X", 3, 0, fixture_id="f-1"),
        _outcome("C", "D", 3, 0, fixture_id="f-2"),
    ]
    with caplog.at_level(logging.WARNING, logger="volleyleague.services.standings"):
        table = {e.team_id: e for e in compute_standings(teams, CONFIG, outcomes)}
    assert "X" not in table
    assert table["A"].played == 0
    assert table["C"].points == 3
    assert any("'X'" in r.getMessage() and "f-1" in r.getMessage() for r in caplog.records)


def test_up_to_round_limits_results(teams):
    outcomes = [
        _outcome("A", "B", 3, 0, round=1),
        _outcome("C", "D", 3, 0, round=1),
        _outcome("B", "A", 3, 0, round=2),
    ]
    after_one = {e.team_id: e for e in compute_standings(teams, CONFIG, outcomes, up_to_round=1)}
    assert after_one["A"].points == 3
    assert after_one["B"].points == 0

    full = {e.team_id: e for e in compute_standings(teams, CONFIG, outcomes)}
    assert full["A"].points == 3
    assert full["B"].points == 3


# ---------- Tie-break cascade ----------


def test_points_rank_first(teams):
    outcomes = [_outcome("A", "B", 3, 2), _outcome("C", "D", 0, 3)]
    assert _ids(compute_standings(teams, CONFIG, outcomes))[:2] == ["D", "A"]


def test_wins_break_equal_points():
    """Equal points, more wins ranks higher regardless of set difference."""
    entries = [
        TableEntry(team_id="x", team_name="X", points=6, won=2, sets_won=6, sets_lost=4),
        TableEntry(team_id="y", team_name="Y", points=6, won=3, sets_won=9, sets_lost=9),
    ]
    assert _ids(sort_table(entries)) == ["y", "x"]


def test_set_quotient_breaks_equal_set_difference():
    """Same points, wins and set difference (+5): unbeaten ranks first, then higher quotient."""
    entries = [
        TableEntry(team_id="alpha", team_name="Alpha", points=9, won=3, sets_won=15, sets_lost=10,
                   set_quotient=Quotient.of(15, 10)),
        TableEntry(team_id="bravo", team_name="Bravo", points=9, won=3, sets_won=10, sets_lost=5,
                   set_quotient=Quotient.of(10, 5)),
        TableEntry(team_id="charlie", team_name="Charlie", points=9, won=3, sets_won=5, sets_lost=0,
                   set_quotient=Quotient.of(5, 0)),
    ]
    assert _ids(sort_table(entries)) == ["charlie", "bravo", "alpha"]


def test_ball_difference_breaks_equal_sets(teams):
    outcomes = [
        _outcome("A", "B", 3, 0, balls=(75, 50)),
        _outcome("C", "D", 3, 0, balls=(75, 60)),
    ]
    table = compute_standings(teams, AGG_CONFIG, outcomes)
    assert _ids(table) == ["A", "C", "D", "B"]


def test_ball_quotient_breaks_equal_ball_difference(teams):
    outcomes = [
        _outcome("A", "B", 3, 0, balls=(75, 50)),
        _outcome("C", "D", 3, 0, balls=(50, 25)),
    ]
    table = compute_standings(teams, AGG_CONFIG, outcomes)
    assert _ids(table) == ["C", "A", "B", "D"]
    by_id = {e.team_id: e for e in table}
    assert by_id["C"].ball_quotient.value == 2.0
    assert by_id["A"].ball_quotient.value == 1.5


def test_name_is_the_last_tie_break():
    entries = [
        TableEntry(team_id="z", team_name="Zugvögel"),
        TableEntry(team_id="a", team_name="Albatros"),
        TableEntry(team_id="m", team_name="Möwen"),
    ]
    assert _ids(sort_table(entries)) == ["a", "m", "z"]


# ---------- Quotient ----------


def test_quotient_rounding_and_zero_denominator():
    assert Quotient.of(2, 3) == Quotient(QuotientKind.FINITE, 0.667)
    assert Quotient.of(0, 3) == Quotient(QuotientKind.FINITE, 0.0)
    assert Quotient.of(4, 0).kind is QuotientKind.INFINITE
    assert Quotient.of(0, 0).kind is QuotientKind.UNDEFINED


def test_quotient_ordering_and_json():
    inf = Quotient.of(3, 0)
    high = Quotient.of(9, 2)
    zero = Quotient.of(0, 0)
    ranked = sorted([zero, high, inf], key=Quotient.sort_key)
    assert ranked == [inf, high, zero]
    assert inf.to_json() == "inf"
    assert high.to_json() == 4.5
    assert zero.to_json() == 0.0
