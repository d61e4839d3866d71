"""
Translate engine errors into HTTP errors.
"""

import logging
from typing import NoReturn

from fastapi import HTTPException
from sqlmodel import Session

from courtdraw.models.tournament import Tournament
from courtdraw.services.errors import (
    BracketError,
    ConfigurationError,
    ResultValidationError,
    StateConflictError,
    StoreError,
)

logger = logging.getLogger(__name__)


def raise_http(exc: BracketError) -> NoReturn:
    if isinstance(exc, (ConfigurationError, ResultValidationError)):
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    if isinstance(exc, StateConflictError):
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if isinstance(exc, StoreError):
        logger.exception("Store failure")
        raise HTTPException(status_code=503, detail="Storage unavailable, try again") from exc
    raise HTTPException(status_code=400, detail=str(exc)) from exc


def get_tournament_or_404(session: Session, tournament_id: int) -> Tournament:
    tournament = session.get(Tournament, tournament_id)
    if not tournament:
        raise HTTPException(status_code=404, detail="Tournament not found")
    return tournament
