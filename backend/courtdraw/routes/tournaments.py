from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from sqlmodel import Session, select

from courtdraw.database import get_session
from courtdraw.models.team import Team
from courtdraw.models.tournament import Tournament
from courtdraw.routes.http_errors import get_tournament_or_404, raise_http
from courtdraw.services import tournament_service
from courtdraw.services.errors import BracketError

router = APIRouter()


class TournamentCreate(BaseModel):
    name: str
    format: str
    description: Optional[str] = None
    max_teams: int = 16
    location: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    settings: Optional[Dict[str, Any]] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()

    @field_validator("max_teams")
    @classmethod
    def validate_max_teams(cls, v):
        if v < 2:
            raise ValueError("max_teams must be >= 2")
        return v

    @model_validator(mode="after")
    def validate_date_range(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be >= start_date")
        return self


class TournamentUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    max_teams: Optional[int] = None
    location: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    settings: Optional[Dict[str, Any]] = None

    @field_validator("max_teams")
    @classmethod
    def validate_max_teams(cls, v):
        if v is not None and v < 2:
            raise ValueError("max_teams must be >= 2")
        return v

    @model_validator(mode="after")
    def validate_date_range(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be >= start_date")
        return self


class TournamentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str]
    format: str
    status: str
    max_teams: int
    location: Optional[str]
    start_date: Optional[date]
    end_date: Optional[date]
    settings: Dict[str, Any]
    created_at: datetime
    updated_at: datetime


class StatusUpdate(BaseModel):
    status: str


class StartResponse(BaseModel):
    tournament: TournamentResponse
    matches_created: int
    groups_created: int


class TeamCreateRequest(BaseModel):
    name: str
    seed: Optional[int] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        if not v or not v.strip():
            raise ValueError("name is required")
        return v.strip()


class TeamResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    name: str
    seed: Optional[int] = None
    created_at: datetime


# ============================================================================
# Tournament Endpoints
# ============================================================================


@router.get("/tournaments", response_model=List[TournamentResponse])
def list_tournaments(session: Session = Depends(get_session)):
    """List all tournaments"""
    return session.exec(select(Tournament).order_by(Tournament.id)).all()


@router.post("/tournaments", response_model=TournamentResponse, status_code=201)
def create_tournament(tournament_data: TournamentCreate, session: Session = Depends(get_session)):
    """Create a tournament; partial settings are merged over the defaults"""
    data = tournament_data.model_dump()
    try:
        return tournament_service.create_tournament(
            session,
            name=data.pop("name"),
            tournament_format=data.pop("format"),
            settings=data.pop("settings"),
            **data,
        )
    except BracketError as exc:
        raise_http(exc)


@router.get("/tournaments/{tournament_id}", response_model=TournamentResponse)
def get_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Get a tournament by ID"""
    return get_tournament_or_404(session, tournament_id)


@router.patch("/tournaments/{tournament_id}", response_model=TournamentResponse)
def update_tournament(tournament_id: int, tournament_data: TournamentUpdate, session: Session = Depends(get_session)):
    """Update tournament details. Settings are refused once the bracket exists."""
    tournament = get_tournament_or_404(session, tournament_id)

    update_data = tournament_data.model_dump(exclude_unset=True)
    settings = update_data.pop("settings", None)
    try:
        if settings is not None:
            tournament = tournament_service.update_settings(session, tournament, settings)
        if update_data:
            tournament = tournament_service.update_details(session, tournament, update_data)
    except BracketError as exc:
        raise_http(exc)
    return tournament


@router.post("/tournaments/{tournament_id}/status", response_model=TournamentResponse)
def update_tournament_status(tournament_id: int, payload: StatusUpdate, session: Session = Depends(get_session)):
    """Change status (draft/registration/completed/cancelled). Use /start for in_progress."""
    tournament = get_tournament_or_404(session, tournament_id)
    try:
        return tournament_service.update_status(session, tournament, payload.status)
    except BracketError as exc:
        raise_http(exc)


@router.post("/tournaments/{tournament_id}/start", response_model=StartResponse)
def start_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Generate the bracket from the registered teams and move to in_progress"""
    tournament = get_tournament_or_404(session, tournament_id)
    try:
        result = tournament_service.start_tournament(session, tournament)
    except BracketError as exc:
        raise_http(exc)
    return StartResponse(
        tournament=TournamentResponse.model_validate(tournament),
        matches_created=len(result.matches),
        groups_created=len(result.groups),
    )


@router.delete("/tournaments/{tournament_id}", status_code=204)
def delete_tournament(tournament_id: int, session: Session = Depends(get_session)):
    """Delete a tournament with its teams, groups, matches and standings"""
    tournament = get_tournament_or_404(session, tournament_id)
    tournament_service.delete_tournament(session, tournament)
    return Response(status_code=204)


# ============================================================================
# Team Endpoints
# ============================================================================


@router.get("/tournaments/{tournament_id}/teams", response_model=List[TeamResponse])
def get_teams(tournament_id: int, session: Session = Depends(get_session)):
    """Teams in registration order"""
    get_tournament_or_404(session, tournament_id)
    return tournament_service.list_teams(session, tournament_id)


@router.post("/tournaments/{tournament_id}/teams", response_model=TeamResponse, status_code=201)
def create_team(tournament_id: int, team_data: TeamCreateRequest, session: Session = Depends(get_session)):
    """Register a team while the tournament is draft or registration"""
    tournament = get_tournament_or_404(session, tournament_id)
    try:
        return tournament_service.register_team(session, tournament, team_data.name, seed=team_data.seed)
    except BracketError as exc:
        raise_http(exc)


@router.delete("/tournaments/{tournament_id}/teams/{team_id}", status_code=204)
def delete_team(tournament_id: int, team_id: int, session: Session = Depends(get_session)):
    """Remove a team before the bracket is generated"""
    tournament = get_tournament_or_404(session, tournament_id)
    team = session.get(Team, team_id)
    if not team or team.tournament_id != tournament_id:
        raise HTTPException(status_code=404, detail="Team not found")
    try:
        tournament_service.remove_team(session, tournament, team_id)
    except BracketError as exc:
        raise_http(exc)
    return Response(status_code=204)
