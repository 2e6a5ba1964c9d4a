#!/usr/bin/env python3
"""
Vertical slice: Create league → Assign teams → Generate fixtures → Enter results → Table.
Run from project root: python3 scripts/vertical_slice.py
"""
from __future__ import annotations

import logging
import random
import sys
from pathlib import Path

# Ensure project root on path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from volleyleague.models import LeagueConfig
from volleyleague.persistence import LeagueRepository, TeamRepository, get_connection, init_db
from volleyleague.persistence.db import set_db_path
from volleyleague.services import LeagueService, RawScoreInput
from volleyleague.services.result_validation import DECIDING_SET_MIN_POINTS, SET_MIN_POINTS

TEAMS = [
    ("SV Blau-Weiß", "Di 19:30"),
    ("TSV Nord", "Mi 20 Uhr"),
    ("VC Hafen", "Do 19:00"),
    ("SC Lindenau", "Fr ab 18"),
    ("DJK Süd", None),
]


def _random_set(rng: random.Random, min_points: int, home_wins: bool) -> tuple[int, int]:
    """A legal set score: most sets end at the minimum, some go to extra points."""
    if rng.random() < 0.2:
        loser = rng.randint(min_points - 1, min_points + 5)
        winner = loser + 2
    else:
        winner = min_points
        loser = rng.randint(max(0, min_points - 15), min_points - 2)
    return (winner, loser) if home_wins else (loser, winner)


def _random_match(rng: random.Random, config: LeagueConfig) -> RawScoreInput:
    sets: list[tuple[int, int]] = []
    home = away = 0
    while home < config.sets_to_win and away < config.sets_to_win:
        index = len(sets) + 1
        min_points = DECIDING_SET_MIN_POINTS if index == config.max_sets else SET_MIN_POINTS
        home_wins = rng.random() < 0.5
        sets.append(_random_set(rng, min_points, home_wins))
        if home_wins:
            home += 1
        else:
            away += 1
    return RawScoreInput(set_scores=sets)


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # Use data/vertical_slice.db for demo (distinct from league.db)
    db_path = PROJECT_ROOT / "data" / "vertical_slice.db"
    if db_path.exists():
        db_path.unlink()
    set_db_path(db_path)
    init_db(db_path=db_path)

    rng = random.Random(2024)
    config = LeagueConfig(has_return_matches=True)

    conn = get_connection()
    try:
        service = LeagueService()
        team_repo = TeamRepository()

        # 1. League and roster
        league = LeagueRepository().create(conn, "Bezirksliga Demo", len(TEAMS), config)
        print(f"Created league: {league.name} (id={league.id})")
        names = {}
        for name, availability in TEAMS:
            team = team_repo.create(conn, name, availability)
            team_repo.assign_to_league(conn, league.id, team.id)
            names[team.id] = name

        # 2. Fixtures
        fixtures = service.generate_fixtures(conn, league.id)
        print(f"Generated {len(fixtures)} fixtures over {len(service.list_matchdays(conn, league.id))} matchdays")

        # 3. Results
        for f in fixtures:
            stored = service.submit_result(conn, f.id, _random_match(rng, config))
            res = stored.result
            sets = " ".join(f"{s.home}:{s.away}" for s in res.set_scores)
            kickoff = f.suggested_time or "--:--"
            print(
                f"  R{f.round:<2} {kickoff}  {names[f.home_team_id]:>14} - {names[f.away_team_id]:<14}"
                f" {res.sets_home}:{res.sets_away}  ({sets})"
            )

        # 4. Table
        print("\nFinal table:")
        for rank, e in enumerate(service.compute_table(conn, league.id), start=1):
            print(
                f"  {rank}. {e.team_name:<14} {e.played:>2} {e.won:>2}-{e.lost:<2}"
                f" sets {e.sets_won}:{e.sets_lost} ({e.set_quotient.to_json()})  {e.points} pts"
            )

        print("\nVertical slice complete.")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
