"""
League-centric service: fixture generation, result entry, table, reordering.
Loads snapshots through repositories, calls the pure scheduling/validation/
standings functions, and persists what they return.
"""
from __future__ import annotations

import logging
import sqlite3

from volleyleague.models import Fixture, FixtureOutcome, League, MatchResult, TableEntry
from volleyleague.persistence.repositories import (
    FixtureRepository,
    LeagueRepository,
    TeamRepository,
)
from volleyleague.services.result_validation import RawScoreInput, validate_result
from volleyleague.services.scheduling import generate_schedule
from volleyleague.services.standings import compute_standings

logger = logging.getLogger(__name__)

# ---------- Exceptions ----------


class LeagueNotFoundError(ValueError):
    """No league with the given id."""


class FixtureNotFoundError(ValueError):
    """No fixture with the given id."""


class TeamCountMismatchError(ValueError):
    """Assigned teams do not match the league's configured team count."""


class FixtureReorderError(ValueError):
    """Reorder list does not cover exactly the league's fixtures."""


# ---------- LeagueService ----------


class LeagueService:
    """
    Domain orchestration for leagues.
    Persistence is delegated to repositories; rules live in the pure services.
    """

    def __init__(self) -> None:
        self._league_repo = LeagueRepository()
        self._team_repo = TeamRepository()
        self._fixture_repo = FixtureRepository()

    def _get_league(self, conn: sqlite3.Connection, league_id: str) -> League:
        league = self._league_repo.get(conn, league_id)
        if league is None:
            raise LeagueNotFoundError(f"League not found: {league_id}")
        return league

    # ---------- Scheduling ----------

    def generate_fixtures(self, conn: sqlite3.Connection, league_id: str) -> list[Fixture]:
        """
        Replace the league's fixture list with a fresh round-robin schedule.
        Requires exactly number_of_teams assigned (and at least 2).
        Existing fixtures and their results are deleted.
        """
        league = self._get_league(conn, league_id)
        teams = self._team_repo.list_by_league(conn, league_id)
        if len(teams) != league.number_of_teams:
            raise TeamCountMismatchError(
                f"Assigned teams ({len(teams)}) do not match the expected number ({league.number_of_teams})"
            )
        fixtures = generate_schedule(teams, league.config.has_return_matches)
        stored = self._fixture_repo.replace_for_league(conn, league_id, fixtures)
        logger.info("Generated %d fixtures for league %s", len(stored), league.name)
        return stored

    def list_fixtures(self, conn: sqlite3.Connection, league_id: str) -> list[Fixture]:
        self._get_league(conn, league_id)
        return self._fixture_repo.list_by_league(conn, league_id)

    def list_matchdays(self, conn: sqlite3.Connection, league_id: str) -> list[int]:
        """Distinct round numbers with at least one fixture, ascending."""
        self._get_league(conn, league_id)
        return self._fixture_repo.list_rounds(conn, league_id)

    def reorder_fixtures(self, conn: sqlite3.Connection, league_id: str, ordered_ids: list[str]) -> None:
        """Persist display order 1..N following ordered_ids. Round and home/away are untouched."""
        self._get_league(conn, league_id)
        known = set(self._fixture_repo.list_ids_by_league(conn, league_id))
        foreign = [fid for fid in ordered_ids if fid not in known]
        if foreign:
            raise FixtureReorderError(
                f"Fixture(s) {', '.join(foreign)} do not belong to league {league_id}"
            )
        if len(set(ordered_ids)) != len(ordered_ids) or len(ordered_ids) != len(known):
            raise FixtureReorderError(
                f"Expected each of the league's {len(known)} fixtures exactly once (got {len(ordered_ids)} ids)"
            )
        self._fixture_repo.update_orders(conn, ordered_ids)

    # ---------- Results ----------

    def submit_result(
        self, conn: sqlite3.Connection, fixture_id: str, raw: RawScoreInput | None
    ) -> Fixture:
        """
        Validate and store a result; None clears it.
        InvalidScore propagates to the caller unchanged.
        """
        fixture = self._fixture_repo.get(conn, fixture_id)
        if fixture is None:
            raise FixtureNotFoundError(f"Fixture not found: {fixture_id}")
        league = self._get_league(conn, fixture.league_id)
        result: MatchResult | None = None
        if raw is not None:
            result = validate_result(raw, league.config)
        self._fixture_repo.update_result(conn, fixture_id, result)
        fixture.result = result
        return fixture

    # ---------- Table ----------

    def compute_table(
        self, conn: sqlite3.Connection, league_id: str, up_to_round: int | None = None
    ) -> list[TableEntry]:
        """Standings from all decided results (optionally only rounds 1..up_to_round)."""
        league = self._get_league(conn, league_id)
        teams = self._team_repo.list_by_league(conn, league_id)
        outcomes = [
            FixtureOutcome(
                home_team_id=f.home_team_id,
                away_team_id=f.away_team_id,
                result=f.result,
                fixture_id=f.id,
                round=f.round,
            )
            for f in self._fixture_repo.list_by_league(conn, league_id)
            if f.result is not None and f.result.decided
        ]
        return compute_standings(teams, league.config, outcomes, up_to_round=up_to_round)
