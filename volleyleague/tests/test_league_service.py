"""
Tests for the league service: fixture generation, result entry, table, reordering.
"""
from __future__ import annotations

import pytest

from volleyleague.models import LeagueConfig, ScoringMode
from volleyleague.persistence.db import get_connection, init_db, set_db_path
from volleyleague.persistence.repositories import (
    FixtureRepository,
    LeagueRepository,
    TeamRepository,
)
from volleyleague.services.league_service import (
    FixtureNotFoundError,
    FixtureReorderError,
    LeagueNotFoundError,
    LeagueService,
    TeamCountMismatchError,
)
from volleyleague.services.result_validation import InvalidScore, RawScoreInput


@pytest.fixture
def db_conn(tmp_path):
    """Temporary DB with the full schema."""
    db_path = tmp_path / "league_test.db"
    set_db_path(db_path)
    init_db(db_path=db_path)
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture
def league_service():
    return LeagueService()


def _make_league(conn, n_teams=4, config=None, assign=None):
    """League expecting n_teams, with `assign` teams (default n_teams) on the roster."""
    league = LeagueRepository().create(conn, "Kreisliga", n_teams, config or LeagueConfig())
    team_repo = TeamRepository()
    teams = []
    for i in range(n_teams if assign is None else assign):
        team = team_repo.create(conn, f"Team {i + 1}", availability=f"{18 + i}:30", id=f"team-{i + 1}")
        team_repo.assign_to_league(conn, league.id, team.id)
        teams.append(team)
    return league, teams


def _straight_win():
    return RawScoreInput(set_scores=[(25, 20), (25, 18), (25, 22)])


# ---------- Fixture generation ----------


def test_generate_fixtures_persists_schedule(db_conn, league_service):
    league, teams = _make_league(db_conn, 4)
    fixtures = league_service.generate_fixtures(db_conn, league.id)
    assert len(fixtures) == 6
    assert all(f.id and f.league_id == league.id for f in fixtures)
    stored = league_service.list_fixtures(db_conn, league.id)
    assert [f.id for f in stored] == [f.id for f in fixtures]
    assert stored[0].home_team_id == teams[0].id
    assert stored[0].suggested_time == "18:30"


def test_generate_fixtures_with_return_matches(db_conn, league_service):
    league, _ = _make_league(db_conn, 5, config=LeagueConfig(has_return_matches=True))
    fixtures = league_service.generate_fixtures(db_conn, league.id)
    assert len(fixtures) == 20
    assert league_service.list_matchdays(db_conn, league.id) == list(range(1, 11))


def test_generate_requires_full_roster(db_conn, league_service):
    league, _ = _make_league(db_conn, 4, assign=3)
    with pytest.raises(TeamCountMismatchError):
        league_service.generate_fixtures(db_conn, league.id)
    assert league_service.list_fixtures(db_conn, league.id) == []


def test_generate_unknown_league(db_conn, league_service):
    with pytest.raises(LeagueNotFoundError):
        league_service.generate_fixtures(db_conn, "missing")


def test_regenerate_replaces_fixtures_and_results(db_conn, league_service):
    league, _ = _make_league(db_conn, 4)
    first = league_service.generate_fixtures(db_conn, league.id)
    league_service.submit_result(db_conn, first[0].id, _straight_win())
    second = league_service.generate_fixtures(db_conn, league.id)
    assert {f.id for f in first}.isdisjoint({f.id for f in second})
    assert all(f.result is None for f in league_service.list_fixtures(db_conn, league.id))
    assert FixtureRepository().get(db_conn, first[0].id) is None


# ---------- Results ----------


def test_submit_result_stores_validated_result(db_conn, league_service):
    league, _ = _make_league(db_conn, 4)
    fixture = league_service.generate_fixtures(db_conn, league.id)[0]
    updated = league_service.submit_result(db_conn, fixture.id, _straight_win())
    assert (updated.result.sets_home, updated.result.sets_away) == (3, 0)

    reloaded = FixtureRepository().get(db_conn, fixture.id)
    assert reloaded.result == updated.result
    assert reloaded.result.home_league_points == 3


def test_submit_invalid_result_leaves_fixture_untouched(db_conn, league_service):
    league, _ = _make_league(db_conn, 4)
    fixture = league_service.generate_fixtures(db_conn, league.id)[0]
    with pytest.raises(InvalidScore) as exc:
        league_service.submit_result(
            db_conn, fixture.id, RawScoreInput(set_scores=[(25, 20), (25, 24)])
        )
    assert exc.value.field == "set_2"
    assert FixtureRepository().get(db_conn, fixture.id).result is None


def test_submit_none_clears_result(db_conn, league_service):
    league, _ = _make_league(db_conn, 4)
    fixture = league_service.generate_fixtures(db_conn, league.id)[0]
    league_service.submit_result(db_conn, fixture.id, _straight_win())
    cleared = league_service.submit_result(db_conn, fixture.id, None)
    assert cleared.result is None
    assert FixtureRepository().get(db_conn, fixture.id).result is None


def test_submit_unknown_fixture(db_conn, league_service):
    with pytest.raises(FixtureNotFoundError):
        league_service.submit_result(db_conn, "missing", _straight_win())


def test_aggregate_league_stores_ball_totals(db_conn, league_service):
    league, _ = _make_league(db_conn, 2, config=LeagueConfig(scoring_mode=ScoringMode.AGGREGATE_SCORE))
    fixture = league_service.generate_fixtures(db_conn, league.id)[0]
    raw = RawScoreInput(home_score="1", away_score="3", home_points="80", away_points="95")
    league_service.submit_result(db_conn, fixture.id, raw)
    table = league_service.compute_table(db_conn, league.id)
    assert table[0].team_id == fixture.away_team_id
    assert (table[0].balls_won, table[0].balls_lost) == (95, 80)


# ---------- Table ----------


def test_compute_table_counts_decided_results_only(db_conn, league_service):
    league, _ = _make_league(db_conn, 4)
    fixtures = league_service.generate_fixtures(db_conn, league.id)
    league_service.submit_result(db_conn, fixtures[0].id, _straight_win())
    league_service.submit_result(
        db_conn, fixtures[1].id, RawScoreInput(set_scores=[(25, 20), (20, 25)])
    )
    table = league_service.compute_table(db_conn, league.id)
    assert len(table) == 4
    assert table[0].team_id == fixtures[0].home_team_id
    assert table[0].points == 3
    assert sum(e.played for e in table) == 2


def test_compute_table_up_to_round(db_conn, league_service):
    league, _ = _make_league(db_conn, 4)
    fixtures = league_service.generate_fixtures(db_conn, league.id)
    for f in fixtures:
        league_service.submit_result(db_conn, f.id, _straight_win())
    after_one = league_service.compute_table(db_conn, league.id, up_to_round=1)
    assert sum(e.played for e in after_one) == 4
    full = league_service.compute_table(db_conn, league.id)
    assert sum(e.played for e in full) == 12


def test_compute_table_unknown_league(db_conn, league_service):
    with pytest.raises(LeagueNotFoundError):
        league_service.compute_table(db_conn, "missing")


# ---------- Reordering ----------


def test_reorder_fixtures(db_conn, league_service):
    league, _ = _make_league(db_conn, 4)
    fixtures = league_service.generate_fixtures(db_conn, league.id)
    reversed_ids = [f.id for f in reversed(fixtures)]
    league_service.reorder_fixtures(db_conn, league.id, reversed_ids)

    stored = {f.id: f for f in league_service.list_fixtures(db_conn, league.id)}
    for position, fid in enumerate(reversed_ids, start=1):
        assert stored[fid].order == position
    before = {f.id: f for f in fixtures}
    for fid, f in stored.items():
        assert f.round == before[fid].round
        assert f.home_team_id == before[fid].home_team_id


def test_reorder_rejects_foreign_fixture(db_conn, league_service):
    league, _ = _make_league(db_conn, 2)
    other = LeagueRepository().create(db_conn, "Bezirksliga", 2, LeagueConfig())
    team_repo = TeamRepository()
    for name in ("X", "Y"):
        team_repo.assign_to_league(db_conn, other.id, team_repo.create(db_conn, name).id)
    own = league_service.generate_fixtures(db_conn, league.id)
    foreign = league_service.generate_fixtures(db_conn, other.id)
    with pytest.raises(FixtureReorderError):
        league_service.reorder_fixtures(db_conn, league.id, [foreign[0].id])
    assert own[0].id != foreign[0].id


@pytest.mark.parametrize("mutate", ["drop", "duplicate"])
def test_reorder_requires_each_fixture_once(db_conn, league_service, mutate):
    league, _ = _make_league(db_conn, 4)
    ids = [f.id for f in league_service.generate_fixtures(db_conn, league.id)]
    bad = ids[:-1] if mutate == "drop" else ids + ids[:1]
    with pytest.raises(FixtureReorderError):
        league_service.reorder_fixtures(db_conn, league.id, bad)
