from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from courtdraw.models.tournament import Tournament


class MatchStatus(str, Enum):
    scheduled = "scheduled"
    in_progress = "in_progress"
    completed = "completed"


class Match(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("tournament_id", "match_number", name="uq_tournament_match_number"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    round: int  # 1-based; groups_elimination continues numbering into the elimination phase
    match_number: int  # generation order, unique per tournament
    bracket_position: int  # 0-based slot within the round
    group_id: Optional[int] = Field(default=None, foreign_key="group.id", index=True)  # None = elimination/ungrouped

    # Team slots (None = to be determined)
    team1_id: Optional[int] = Field(default=None, foreign_key="team.id")
    team2_id: Optional[int] = Field(default=None, foreign_key="team.id")
    winner_id: Optional[int] = Field(default=None, foreign_key="team.id")

    status: str = Field(default=MatchStatus.scheduled.value)  # scheduled | in_progress | completed
    court: Optional[str] = Field(default=None)
    scheduled_at: Optional[datetime] = Field(default=None)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="matches")
    sets: List["MatchSet"] = Relationship(
        back_populates="match",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "MatchSet.set_number"},
    )


class MatchSet(SQLModel, table=True):
    __table_args__ = (SAUniqueConstraint("match_id", "set_number", name="uq_match_set_number"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="match.id", index=True)
    set_number: int  # 1-based
    team1_score: int = Field(default=0, ge=0)
    team2_score: int = Field(default=0, ge=0)

    match: "Match" = Relationship(back_populates="sets")
