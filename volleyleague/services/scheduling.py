"""
Deterministic round-robin schedule generation for leagues.

Round-robin is used so every team plays every other team once per leg; a leg
is N-1 rounds (N even) or N rounds (N odd). Each team plays at most one match
per round.

BYE handling: when the number of teams is odd, an empty slot (None) is added.
Whoever is paired with it sits the round out; that pairing is never emitted.

Uses the circle method: the first team stays fixed, the others rotate one
step left each round. Home/away follows the round parity for the fixed slot
and pairing-index vs. round parity for the rest. Same team list ordering
yields the same schedule, fixture for fixture.
"""
from __future__ import annotations

import logging
import re
from collections import defaultdict
from typing import Sequence

from volleyleague.models import Fixture, Team

logger = logging.getLogger(__name__)

_EXACT_TIME = re.compile(r"\b(\d{1,2}):(\d{2})", re.ASCII)
_BARE_HOUR = re.compile(r"\b(\d{1,2})\b", re.ASCII)


class InvalidInput(ValueError):
    """Schedule requested for fewer than two teams."""


def extract_kickoff_time(text: str | None) -> str | None:
    """
    Best-effort kickoff time from free text.
    "Mi 19:30 Halle" -> "19:30", "ab 20 Uhr" -> "20:00", "abends" -> None.
    Only the first bare number is considered; out of range (>23) gives None.
    """
    if not text:
        return None
    exact = _EXACT_TIME.search(text)
    if exact:
        return f"{int(exact.group(1)):02d}:{exact.group(2)}"
    bare = _BARE_HOUR.search(text)
    if bare:
        hour = int(bare.group(1))
        if 0 <= hour <= 23:
            return f"{hour:02d}:00"
    return None


def rounds_for(team_count: int) -> int:
    """Rounds in one leg: N-1 for even N, N for odd N (one bye per round)."""
    if team_count < 2:
        return 0
    return team_count - 1 if team_count % 2 == 0 else team_count


def round_robin_pairings(team_ids: Sequence[str]) -> list[tuple[int, str, str]]:
    """
    Generate first-leg pairings: (round_number, home_team_id, away_team_id).
    Bye pairings are skipped. Deterministic: same team list => same schedule.
    """
    if len(team_ids) < 2:
        raise InvalidInput(f"Need at least 2 teams to build a schedule (got {len(team_ids)})")
    slots: list[str | None] = list(team_ids)
    if len(slots) % 2 == 1:
        slots.append(None)
    n = len(slots)
    fixed = slots[0]
    rotating = slots[1:]
    result: list[tuple[int, str, str]] = []
    for r in range(n - 1):
        # Fixed slot against the head of the rotation; home flips every round
        head = rotating[0]
        if fixed is not None and head is not None:
            if r % 2 == 0:
                result.append((r + 1, fixed, head))
            else:
                result.append((r + 1, head, fixed))
        # Remaining slots paired outside-in
        for i in range(1, n // 2):
            t1 = rotating[i]
            t2 = rotating[n - 1 - i]
            if t1 is None or t2 is None:
                continue
            if i % 2 != r % 2:
                result.append((r + 1, t1, t2))
            else:
                result.append((r + 1, t2, t1))
        rotating.append(rotating.pop(0))
    return result


def generate_schedule(teams: Sequence[Team], has_return_matches: bool = False) -> list[Fixture]:
    """
    Return the full fixture list in round order with display order 1..N.
    With return matches the second leg mirrors the first (home/away swapped)
    and its rounds continue after the first leg's last round.
    Kickoff time is suggested from the home team's availability.
    """
    by_id = {t.id: t for t in teams}
    if len(by_id) != len(teams):
        raise InvalidInput("Team ids must be unique")
    first_leg = round_robin_pairings([t.id for t in teams])
    rounds = rounds_for(len(teams))
    pairings = list(first_leg)
    if has_return_matches:
        pairings.extend((rnd + rounds, away, home) for rnd, home, away in first_leg)

    fixtures = [
        Fixture(
            home_team_id=home,
            away_team_id=away,
            round=rnd,
            order=order,
            suggested_time=extract_kickoff_time(by_id[home].availability),
        )
        for order, (rnd, home, away) in enumerate(pairings, start=1)
    ]
    _log_balance(teams, fixtures)
    return fixtures


def _log_balance(teams: Sequence[Team], fixtures: list[Fixture]) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    home: dict[str, int] = defaultdict(int)
    away: dict[str, int] = defaultdict(int)
    matchdays: dict[str, set[int]] = defaultdict(set)
    for f in fixtures:
        home[f.home_team_id] += 1
        away[f.away_team_id] += 1
        matchdays[f.home_team_id].add(f.round)
        matchdays[f.away_team_id].add(f.round)
    for t in teams:
        logger.debug(
            "Team %s: %d home, %d away, %d matchdays",
            t.id, home[t.id], away[t.id], len(matchdays[t.id]),
        )
