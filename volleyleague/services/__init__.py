"""
Service layer: scheduling, result validation, standings, league orchestration.
scheduling, result_validation and standings are pure; league_service orchestrates persistence.
"""
from .scheduling import InvalidInput, generate_schedule, extract_kickoff_time
from .result_validation import InvalidScore, RawScoreInput, validate_result, league_points
from .standings import UnknownTeamReference, compute_standings
from .league_service import (
    LeagueService,
    LeagueNotFoundError,
    FixtureNotFoundError,
    TeamCountMismatchError,
    FixtureReorderError,
)

__all__ = [
    "InvalidInput",
    "generate_schedule",
    "extract_kickoff_time",
    "InvalidScore",
    "RawScoreInput",
    "validate_result",
    "league_points",
    "UnknownTeamReference",
    "compute_standings",
    "LeagueService",
    "LeagueNotFoundError",
    "FixtureNotFoundError",
    "TeamCountMismatchError",
    "FixtureReorderError",
]
