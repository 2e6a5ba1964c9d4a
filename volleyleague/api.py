"""
REST API for the volleyball league backend.
Thin wrappers around domain logic and persistence.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager, contextmanager
from typing import Any, AsyncGenerator, Generator

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from volleyleague import config
from volleyleague.models import InvalidLeagueConfig, LeagueConfig, ScoringMode
from volleyleague.persistence import (
    get_connection,
    init_db,
    LeagueRepository,
    TeamRepository,
)
from volleyleague.persistence.db import get_db_path
from volleyleague.services.league_service import (
    FixtureNotFoundError,
    FixtureReorderError,
    LeagueNotFoundError,
    LeagueService,
    TeamCountMismatchError,
)
from volleyleague.services.result_validation import InvalidScore, RawScoreInput
from volleyleague.services.scheduling import InvalidInput


@contextmanager
def db_conn() -> Generator:
    """Yield a DB connection, ensure close on exit."""
    conn = get_connection()
    try:
        yield conn
    finally:
        conn.close()


# ---------- Lifespan ----------
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logging.basicConfig(
        level=config.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    init_db(db_path=get_db_path())
    yield


# ---------- FastAPI app ----------
app = FastAPI(
    title="Volleyball League API",
    description="Round-robin fixtures, result entry and league tables",
    version="0.1.0",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------- Request/Response models ----------


class CreateLeagueRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    number_of_teams: int = Field(..., ge=2, le=40)
    scoring_mode: ScoringMode = ScoringMode.SET_SCORES
    sets_to_win: int = Field(3, ge=2, le=3, description="2 = best of 3, 3 = best of 5")
    points_win_30: int = Field(3, ge=0)
    points_win_31: int = Field(3, ge=0)
    points_win_32: int = Field(2, ge=0)
    points_loss_32: int = Field(1, ge=0)
    has_return_matches: bool = False


class CreateTeamRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    availability: str | None = Field(None, description="Free text, e.g. 'Tue 19:30'; used to suggest kickoff times")


class AssignTeamRequest(BaseModel):
    team_id: str


class SetScoreIn(BaseModel):
    home: int | str | None = None
    away: int | str | None = None


class ResultRequest(BaseModel):
    """Either home_score/away_score (aggregate leagues) or set_scores (set leagues)."""
    home_score: int | str | None = None
    away_score: int | str | None = None
    home_points: int | str | None = Field(None, description="Ball points, aggregate leagues only")
    away_points: int | str | None = None
    set_scores: list[SetScoreIn] = Field(default_factory=list)
    clear: bool = Field(False, description="Remove a stored result")


class ReorderRequest(BaseModel):
    fixture_ids: list[str]


# ---------- Leagues & teams ----------


@app.post("/leagues")
def create_league(req: CreateLeagueRequest) -> dict[str, Any]:
    try:
        league_config = LeagueConfig(
            scoring_mode=req.scoring_mode,
            sets_to_win=req.sets_to_win,
            points_win_30=req.points_win_30,
            points_win_31=req.points_win_31,
            points_win_32=req.points_win_32,
            points_loss_32=req.points_loss_32,
            has_return_matches=req.has_return_matches,
        )
    except InvalidLeagueConfig as e:
        raise HTTPException(status_code=400, detail=str(e))
    with db_conn() as conn:
        league = LeagueRepository().create(conn, req.name, req.number_of_teams, league_config)
        return league.to_dict()


@app.get("/leagues")
def list_leagues() -> dict[str, Any]:
    """All leagues, oldest first, each with its team count assigned so far."""
    with db_conn() as conn:
        team_repo = TeamRepository()
        leagues = []
        for league in LeagueRepository().list_all(conn):
            out = league.to_dict()
            out["assigned_teams"] = len(team_repo.list_by_league(conn, league.id))
            leagues.append(out)
        return {"leagues": leagues}


@app.get("/leagues/{league_id}")
def get_league(league_id: str) -> dict[str, Any]:
    """League with its roster."""
    with db_conn() as conn:
        league = LeagueRepository().get(conn, league_id)
        if league is None:
            raise HTTPException(status_code=404, detail="League not found")
        out = league.to_dict()
        out["teams"] = [t.to_dict() for t in TeamRepository().list_by_league(conn, league_id)]
        return out


@app.post("/teams")
def create_team(req: CreateTeamRequest) -> dict[str, Any]:
    with db_conn() as conn:
        team = TeamRepository().create(conn, req.name, req.availability)
        return team.to_dict()


@app.post("/leagues/{league_id}/teams")
def assign_team(league_id: str, req: AssignTeamRequest) -> dict[str, Any]:
    with db_conn() as conn:
        league_repo = LeagueRepository()
        team_repo = TeamRepository()
        league = league_repo.get(conn, league_id)
        if league is None:
            raise HTTPException(status_code=404, detail="League not found")
        if team_repo.get(conn, req.team_id) is None:
            raise HTTPException(status_code=404, detail="Team not found")
        roster = team_repo.list_by_league(conn, league_id)
        if req.team_id not in {t.id for t in roster} and len(roster) >= league.number_of_teams:
            raise HTTPException(status_code=400, detail="League is full")
        team_repo.assign_to_league(conn, league_id, req.team_id)
        return {"league_id": league_id, "team_id": req.team_id, "assigned": True}


# ---------- Fixtures ----------


@app.post("/leagues/{league_id}/generate-fixtures")
def generate_fixtures(league_id: str) -> dict[str, Any]:
    """Regenerate the round-robin schedule. Deletes existing fixtures and results."""
    with db_conn() as conn:
        svc = LeagueService()
        try:
            fixtures = svc.generate_fixtures(conn, league_id)
        except LeagueNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except (TeamCountMismatchError, InvalidInput) as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {
            "league_id": league_id,
            "fixture_count": len(fixtures),
            "fixtures": [f.to_dict() for f in fixtures],
        }


@app.get("/leagues/{league_id}/fixtures")
def list_fixtures(league_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        try:
            fixtures = LeagueService().list_fixtures(conn, league_id)
        except LeagueNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return {"league_id": league_id, "fixtures": [f.to_dict() for f in fixtures]}


@app.post("/leagues/{league_id}/fixtures/reorder")
def reorder_fixtures(league_id: str, req: ReorderRequest) -> dict[str, Any]:
    with db_conn() as conn:
        try:
            LeagueService().reorder_fixtures(conn, league_id, req.fixture_ids)
        except LeagueNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except FixtureReorderError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"league_id": league_id, "reordered": True}


@app.put("/fixtures/{fixture_id}/result")
def submit_result(fixture_id: str, req: ResultRequest) -> dict[str, Any]:
    """Validate and store a result. 400 names the offending set or field."""
    raw = None
    if not req.clear:
        raw = RawScoreInput(
            home_score=req.home_score,
            away_score=req.away_score,
            home_points=req.home_points,
            away_points=req.away_points,
            set_scores=[(s.home, s.away) for s in req.set_scores],
        )
    with db_conn() as conn:
        try:
            fixture = LeagueService().submit_result(conn, fixture_id, raw)
        except (FixtureNotFoundError, LeagueNotFoundError) as e:
            raise HTTPException(status_code=404, detail=str(e))
        except InvalidScore as e:
            raise HTTPException(status_code=400, detail={"field": e.field, "message": str(e)})
        return fixture.to_dict()


# ---------- Table ----------


@app.get("/leagues/{league_id}/table")
def get_table(
    league_id: str,
    matchday: int | None = Query(None, ge=1, description="Only count results up to this round"),
) -> dict[str, Any]:
    with db_conn() as conn:
        try:
            entries = LeagueService().compute_table(conn, league_id, up_to_round=matchday)
        except LeagueNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return {
            "league_id": league_id,
            "matchday": matchday,
            "table": [
                {"rank": rank, **e.to_dict()} for rank, e in enumerate(entries, start=1)
            ],
        }


@app.get("/leagues/{league_id}/matchdays")
def list_matchdays(league_id: str) -> dict[str, Any]:
    with db_conn() as conn:
        try:
            matchdays = LeagueService().list_matchdays(conn, league_id)
        except LeagueNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        return {"league_id": league_id, "matchdays": matchdays}
