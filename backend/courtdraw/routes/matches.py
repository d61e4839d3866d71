"""
Match runtime: listing, starting, result reporting and advancement repair.
Reporting a result completes the match, updates standings and fills
downstream team slots in one call.
"""
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel import Session

from courtdraw.database import get_session
from courtdraw.models.match import Match
from courtdraw.routes.http_errors import get_tournament_or_404, raise_http
from courtdraw.services import match_results
from courtdraw.services.errors import BracketError
from courtdraw.services.score_parser import SetScore, parse_score
from courtdraw.services.store import SqlStore

router = APIRouter()


class SetScoreIn(BaseModel):
    team1: int = Field(ge=0)
    team2: int = Field(ge=0)


class MatchResultRequest(BaseModel):
    sets: Optional[List[SetScoreIn]] = None
    score: Optional[str] = None  # "6-3 4-6 10-7"; used when sets is not given
    winner_id: Optional[int] = None


class MatchSetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    set_number: int
    team1_score: int
    team2_score: int


class MatchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    tournament_id: int
    round: int
    match_number: int
    bracket_position: int
    group_id: Optional[int] = None
    team1_id: Optional[int] = None
    team2_id: Optional[int] = None
    winner_id: Optional[int] = None
    status: str
    court: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    sets: List[MatchSetResponse] = []


class MatchResultResponse(BaseModel):
    match: MatchResponse
    advanced_count: int = 0


class ResolveAdvancementsResponse(BaseModel):
    """Response for bulk advancement resolution"""

    matches_processed: int
    teams_advanced: int
    unknown_before: int
    unknown_after: int


def _request_sets(payload: MatchResultRequest) -> List[SetScore]:
    if payload.sets is not None:
        return [SetScore(team1_score=s.team1, team2_score=s.team2) for s in payload.sets]
    parsed = parse_score(payload.score)
    if parsed is None:
        raise HTTPException(status_code=422, detail="Provide sets or a score like '6-3 4-6 10-7'")
    return parsed


def _get_match_or_404(session: Session, tournament_id: int, match_id: int) -> Match:
    match = session.get(Match, match_id)
    if not match or match.tournament_id != tournament_id:
        raise HTTPException(status_code=404, detail="Match not found")
    return match


@router.get("/tournaments/{tournament_id}/matches", response_model=List[MatchResponse])
def list_matches(
    tournament_id: int,
    round: Optional[int] = Query(None),
    group_id: Optional[int] = Query(None),
    session: Session = Depends(get_session),
):
    """All matches of a tournament ordered by round, then match_number"""
    get_tournament_or_404(session, tournament_id)
    try:
        return SqlStore(session).query_matches(tournament_id, round=round, group_id=group_id)
    except BracketError as exc:
        raise_http(exc)


@router.get("/tournaments/{tournament_id}/matches/{match_id}", response_model=MatchResponse)
def get_match(tournament_id: int, match_id: int, session: Session = Depends(get_session)):
    get_tournament_or_404(session, tournament_id)
    return _get_match_or_404(session, tournament_id, match_id)


@router.post("/tournaments/{tournament_id}/matches/{match_id}/start", response_model=MatchResponse)
def start_match(tournament_id: int, match_id: int, session: Session = Depends(get_session)):
    """Mark a scheduled match as in_progress"""
    tournament = get_tournament_or_404(session, tournament_id)
    _get_match_or_404(session, tournament_id, match_id)
    try:
        return match_results.start_match(SqlStore(session), tournament, match_id)
    except BracketError as exc:
        raise_http(exc)


@router.post("/tournaments/{tournament_id}/matches/{match_id}/result", response_model=MatchResultResponse)
def report_result(
    tournament_id: int,
    match_id: int,
    payload: MatchResultRequest,
    session: Session = Depends(get_session),
) -> MatchResultResponse:
    """Complete a match with its set scores. Standings and advancement follow."""
    tournament = get_tournament_or_404(session, tournament_id)
    _get_match_or_404(session, tournament_id, match_id)
    sets = _request_sets(payload)
    try:
        outcome = match_results.report_match_result(
            SqlStore(session), tournament, match_id, sets, winner_id=payload.winner_id
        )
    except BracketError as exc:
        raise_http(exc)
    return MatchResultResponse(
        match=MatchResponse.model_validate(outcome.match),
        advanced_count=outcome.advanced_count,
    )


@router.post("/tournaments/{tournament_id}/matches/{match_id}/advance", response_model=Dict[str, int])
def advance_match(tournament_id: int, match_id: int, session: Session = Depends(get_session)) -> Dict[str, int]:
    """Manually run advancement for a completed match (repair/testing)"""
    tournament = get_tournament_or_404(session, tournament_id)
    _get_match_or_404(session, tournament_id, match_id)
    try:
        advanced_count = match_results.rerun_advancement(SqlStore(session), tournament, match_id)
    except BracketError as exc:
        raise_http(exc)
    return {"advanced_count": advanced_count}


@router.post("/tournaments/{tournament_id}/resolve-advancements", response_model=ResolveAdvancementsResponse)
def resolve_advancements(tournament_id: int, session: Session = Depends(get_session)) -> ResolveAdvancementsResponse:
    """
    Re-apply advancement for every completed match.

    Idempotent; useful after an interrupted report or a bulk import.
    """
    tournament = get_tournament_or_404(session, tournament_id)
    try:
        result = match_results.resolve_tournament(SqlStore(session), tournament)
    except BracketError as exc:
        raise_http(exc)
    return ResolveAdvancementsResponse(**result)
