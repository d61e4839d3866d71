from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlmodel import Session, select

from courtdraw.database import get_session
from courtdraw.models.group import GroupTeam
from courtdraw.routes.http_errors import get_tournament_or_404, raise_http
from courtdraw.services.errors import BracketError
from courtdraw.services.standings_service import get_standings
from courtdraw.services.store import SqlStore

router = APIRouter()


class StandingRow(BaseModel):
    position: int
    team_id: int
    group_id: Optional[int] = None
    matches_played: int
    wins: int
    losses: int
    draws: int
    sets_won: int
    sets_lost: int
    games_won: int
    games_lost: int
    points: int


class GroupResponse(BaseModel):
    id: int
    name: str
    order: int
    team_ids: List[int]


@router.get("/tournaments/{tournament_id}/standings", response_model=List[StandingRow])
def list_standings(
    tournament_id: int,
    group_id: Optional[int] = Query(None),
    session: Session = Depends(get_session),
):
    """Ranked standings (points, then game differential), optionally for one group"""
    get_tournament_or_404(session, tournament_id)
    try:
        ranked = get_standings(SqlStore(session), tournament_id, group_id=group_id)
    except BracketError as exc:
        raise_http(exc)
    return [
        StandingRow(
            position=r.position,
            team_id=r.standing.team_id,
            group_id=r.standing.group_id,
            matches_played=r.standing.matches_played,
            wins=r.standing.wins,
            losses=r.standing.losses,
            draws=r.standing.draws,
            sets_won=r.standing.sets_won,
            sets_lost=r.standing.sets_lost,
            games_won=r.standing.games_won,
            games_lost=r.standing.games_lost,
            points=r.standing.points,
        )
        for r in ranked
    ]


@router.get("/tournaments/{tournament_id}/groups", response_model=List[GroupResponse])
def list_groups(tournament_id: int, session: Session = Depends(get_session)):
    """Groups in order with their member team ids"""
    get_tournament_or_404(session, tournament_id)
    try:
        groups = SqlStore(session).query_groups(tournament_id)
    except BracketError as exc:
        raise_http(exc)
    result = []
    for group in groups:
        memberships = session.exec(select(GroupTeam).where(GroupTeam.group_id == group.id).order_by(GroupTeam.id)).all()
        result.append(GroupResponse(id=group.id, name=group.name, order=group.order, team_ids=[m.team_id for m in memberships]))
    return result
