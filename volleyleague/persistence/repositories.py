"""
Repository interfaces for league data.
No business logic, only read/write operations.
"""
from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from typing import Iterable

from volleyleague.models import Fixture, League, LeagueConfig, MatchResult, ScoringMode, Team


def _parse_datetime(s: str | None) -> datetime:
    if s is None:
        raise ValueError("expected datetime string")
    return datetime.fromisoformat(s.replace("Z", "+00:00"))


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------- LeagueRepository ----------


class LeagueRepository:
    """CRUD for leagues. Scoring rules live on the league row."""

    def create(
        self,
        conn: sqlite3.Connection,
        name: str,
        number_of_teams: int,
        config: LeagueConfig,
        id: str | None = None,
    ) -> League:
        lid = id or str(uuid.uuid4())
        now = _now_iso()
        conn.execute(
            """INSERT INTO leagues (id, name, number_of_teams, scoring_mode, sets_to_win,
               points_win_30, points_win_31, points_win_32, points_loss_32, has_return_matches, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                lid, name, number_of_teams, config.scoring_mode.value, config.sets_to_win,
                config.points_win_30, config.points_win_31, config.points_win_32, config.points_loss_32,
                1 if config.has_return_matches else 0, now,
            ),
        )
        conn.commit()
        return League(
            id=lid, name=name, number_of_teams=number_of_teams, config=config,
            created_at=_parse_datetime(now),
        )

    def get(self, conn: sqlite3.Connection, league_id: str) -> League | None:
        row = conn.execute("SELECT * FROM leagues WHERE id = ?", (league_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_league(row)

    def list_all(self, conn: sqlite3.Connection) -> list[League]:
        rows = conn.execute("SELECT * FROM leagues ORDER BY created_at").fetchall()
        return [self._row_to_league(r) for r in rows]

    @staticmethod
    def _row_to_league(row: sqlite3.Row) -> League:
        config = LeagueConfig(
            scoring_mode=ScoringMode(row["scoring_mode"]),
            sets_to_win=row["sets_to_win"],
            points_win_30=row["points_win_30"],
            points_win_31=row["points_win_31"],
            points_win_32=row["points_win_32"],
            points_loss_32=row["points_loss_32"],
            has_return_matches=bool(row["has_return_matches"]),
        )
        return League(
            id=row["id"],
            name=row["name"],
            number_of_teams=row["number_of_teams"],
            config=config,
            created_at=_parse_datetime(row["created_at"]),
        )


# ---------- TeamRepository ----------


class TeamRepository:
    """CRUD for teams and league rosters."""

    def create(
        self,
        conn: sqlite3.Connection,
        name: str,
        availability: str | None = None,
        id: str | None = None,
    ) -> Team:
        tid = id or str(uuid.uuid4())
        conn.execute(
            "INSERT INTO teams (id, name, availability, created_at) VALUES (?, ?, ?, ?)",
            (tid, name, availability, _now_iso()),
        )
        conn.commit()
        return Team(id=tid, name=name, availability=availability)

    def get(self, conn: sqlite3.Connection, team_id: str) -> Team | None:
        row = conn.execute(
            "SELECT id, name, availability FROM teams WHERE id = ?", (team_id,)
        ).fetchone()
        if row is None:
            return None
        return Team(id=row["id"], name=row["name"], availability=row["availability"])

    def assign_to_league(self, conn: sqlite3.Connection, league_id: str, team_id: str) -> None:
        """Append team to the league roster (no-op if already assigned)."""
        row = conn.execute(
            "SELECT COALESCE(MAX(position), 0) AS pos FROM league_teams WHERE league_id = ?",
            (league_id,),
        ).fetchone()
        conn.execute(
            "INSERT OR IGNORE INTO league_teams (league_id, team_id, position) VALUES (?, ?, ?)",
            (league_id, team_id, row["pos"] + 1),
        )
        conn.commit()

    def list_by_league(self, conn: sqlite3.Connection, league_id: str) -> list[Team]:
        """Roster in assignment order."""
        rows = conn.execute(
            """SELECT t.id, t.name, t.availability FROM teams t
               JOIN league_teams lt ON lt.team_id = t.id
               WHERE lt.league_id = ? ORDER BY lt.position""",
            (league_id,),
        ).fetchall()
        return [Team(id=r["id"], name=r["name"], availability=r["availability"]) for r in rows]


# ---------- FixtureRepository ----------


class FixtureRepository:
    """CRUD for fixtures and their stored results."""

    def replace_for_league(
        self, conn: sqlite3.Connection, league_id: str, fixtures: Iterable[Fixture]
    ) -> list[Fixture]:
        """Delete the league's fixtures and insert the new list in one transaction."""
        now = _now_iso()
        stored: list[Fixture] = []
        with conn:
            conn.execute("DELETE FROM fixtures WHERE league_id = ?", (league_id,))
            for f in fixtures:
                fid = str(uuid.uuid4())
                conn.execute(
                    """INSERT INTO fixtures (id, league_id, home_team_id, away_team_id, round,
                       display_order, suggested_time, created_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                    (fid, league_id, f.home_team_id, f.away_team_id, f.round, f.order, f.suggested_time, now),
                )
                stored.append(Fixture(
                    home_team_id=f.home_team_id,
                    away_team_id=f.away_team_id,
                    round=f.round,
                    order=f.order,
                    suggested_time=f.suggested_time,
                    id=fid,
                    league_id=league_id,
                ))
        return stored

    def get(self, conn: sqlite3.Connection, fixture_id: str) -> Fixture | None:
        row = conn.execute("SELECT * FROM fixtures WHERE id = ?", (fixture_id,)).fetchone()
        if row is None:
            return None
        return self._row_to_fixture(row)

    def list_by_league(self, conn: sqlite3.Connection, league_id: str) -> list[Fixture]:
        """Fixtures by round, then display order."""
        rows = conn.execute(
            "SELECT * FROM fixtures WHERE league_id = ? ORDER BY round, display_order",
            (league_id,),
        ).fetchall()
        return [self._row_to_fixture(r) for r in rows]

    def list_ids_by_league(self, conn: sqlite3.Connection, league_id: str) -> list[str]:
        rows = conn.execute("SELECT id FROM fixtures WHERE league_id = ?", (league_id,)).fetchall()
        return [r["id"] for r in rows]

    def list_rounds(self, conn: sqlite3.Connection, league_id: str) -> list[int]:
        rows = conn.execute(
            "SELECT DISTINCT round FROM fixtures WHERE league_id = ? ORDER BY round",
            (league_id,),
        ).fetchall()
        return [r["round"] for r in rows]

    def update_result(self, conn: sqlite3.Connection, fixture_id: str, result: MatchResult | None) -> None:
        """Store a validated result, or clear it with None."""
        if result is None:
            values: tuple = (None, None, None, None, None, None, None)
        else:
            set_json = None
            if result.set_scores:
                set_json = json.dumps([s.to_dict() if s is not None else None for s in result.set_scores])
            values = (
                result.sets_home, result.sets_away, set_json,
                result.home_points, result.away_points,
                result.home_league_points, result.away_league_points,
            )
        conn.execute(
            """UPDATE fixtures SET sets_home = ?, sets_away = ?, set_scores = ?,
               home_points = ?, away_points = ?, home_league_points = ?, away_league_points = ?
               WHERE id = ?""",
            values + (fixture_id,),
        )
        conn.commit()

    def update_orders(self, conn: sqlite3.Connection, ordered_ids: list[str]) -> None:
        """Assign display_order 1..N following ordered_ids, in one transaction."""
        with conn:
            for index, fid in enumerate(ordered_ids, start=1):
                conn.execute("UPDATE fixtures SET display_order = ? WHERE id = ?", (index, fid))

    @staticmethod
    def _row_to_fixture(row: sqlite3.Row) -> Fixture:
        result = None
        if row["sets_home"] is not None and row["sets_away"] is not None:
            d = dict(row)
            d["set_scores"] = json.loads(row["set_scores"]) if row["set_scores"] else []
            result = MatchResult.from_dict(d)
        return Fixture(
            home_team_id=row["home_team_id"],
            away_team_id=row["away_team_id"],
            round=row["round"],
            order=row["display_order"],
            suggested_time=row["suggested_time"],
            result=result,
            id=row["id"],
            league_id=row["league_id"],
        )
