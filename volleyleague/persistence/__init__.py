"""
Persistence layer for league data.
No business logic, only read/write interfaces.
"""
from .db import get_connection, init_db
from .repositories import (
    LeagueRepository,
    TeamRepository,
    FixtureRepository,
)

__all__ = [
    "get_connection",
    "init_db",
    "LeagueRepository",
    "TeamRepository",
    "FixtureRepository",
]
