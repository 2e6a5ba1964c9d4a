"""
SQLite schema for league entities.
Migration-friendly: each table created with IF NOT EXISTS.
"""
from __future__ import annotations


def leagues_schema() -> str:
    """Competition container plus its scoring rules (one row, no separate config table)."""
    return """
    CREATE TABLE IF NOT EXISTS leagues (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        number_of_teams INTEGER NOT NULL,
        scoring_mode TEXT NOT NULL DEFAULT 'set_scores',
        sets_to_win INTEGER NOT NULL DEFAULT 3,
        points_win_30 INTEGER NOT NULL DEFAULT 3,
        points_win_31 INTEGER NOT NULL DEFAULT 3,
        points_win_32 INTEGER NOT NULL DEFAULT 2,
        points_loss_32 INTEGER NOT NULL DEFAULT 1,
        has_return_matches INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    );
    """


def teams_schema() -> str:
    return """
    CREATE TABLE IF NOT EXISTS teams (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        availability TEXT,
        created_at TEXT NOT NULL
    );
    """


def league_teams_schema() -> str:
    """Roster join table. position keeps assignment order, which drives the rotation."""
    return """
    CREATE TABLE IF NOT EXISTS league_teams (
        league_id TEXT NOT NULL,
        team_id TEXT NOT NULL,
        position INTEGER NOT NULL,
        PRIMARY KEY (league_id, team_id),
        FOREIGN KEY (league_id) REFERENCES leagues(id),
        FOREIGN KEY (team_id) REFERENCES teams(id)
    );
    CREATE INDEX IF NOT EXISTS ix_league_teams_league ON league_teams(league_id);
    """


def fixtures_schema() -> str:
    """
    One row per fixture. Result columns are NULL until a result is stored.
    set_scores: JSON list of {"home", "away"} (SET_SCORES leagues only).
    """
    return """
    CREATE TABLE IF NOT EXISTS fixtures (
        id TEXT PRIMARY KEY,
        league_id TEXT NOT NULL,
        home_team_id TEXT NOT NULL,
        away_team_id TEXT NOT NULL,
        round INTEGER NOT NULL,
        display_order INTEGER NOT NULL,
        suggested_time TEXT,
        sets_home INTEGER,
        sets_away INTEGER,
        set_scores TEXT,
        home_points INTEGER,
        away_points INTEGER,
        home_league_points INTEGER,
        away_league_points INTEGER,
        created_at TEXT NOT NULL,
        FOREIGN KEY (league_id) REFERENCES leagues(id),
        FOREIGN KEY (home_team_id) REFERENCES teams(id),
        FOREIGN KEY (away_team_id) REFERENCES teams(id)
    );
    CREATE INDEX IF NOT EXISTS ix_fixtures_league ON fixtures(league_id);
    CREATE INDEX IF NOT EXISTS ix_fixtures_round ON fixtures(league_id, round);
    """


def all_schema_sql() -> str:
    return "\n".join([
        leagues_schema(),
        teams_schema(),
        league_teams_schema(),
        fixtures_schema(),
    ])
