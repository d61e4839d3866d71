from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from courtdraw.models.tournament import Tournament


class Standing(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "team_id", name="uq_tournament_standing_team"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    team_id: int = Field(foreign_key="team.id", index=True)
    group_id: Optional[int] = Field(default=None, foreign_key="group.id", index=True)  # None for ungrouped formats

    # Cumulative counters (only the standings tracker writes these)
    matches_played: int = Field(default=0)
    wins: int = Field(default=0)
    losses: int = Field(default=0)
    draws: int = Field(default=0)
    sets_won: int = Field(default=0)
    sets_lost: int = Field(default=0)
    games_won: int = Field(default=0)
    games_lost: int = Field(default=0)
    points: int = Field(default=0)

    # Display rank; recomputed on read, not authoritative
    position: int = Field(default=0)

    tournament: "Tournament" = Relationship(back_populates="standings")
