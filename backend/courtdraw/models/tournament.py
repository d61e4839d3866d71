from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy import JSON, String
from sqlmodel import Column, Field, Relationship, SQLModel

if TYPE_CHECKING:
    from courtdraw.models.group import Group
    from courtdraw.models.match import Match
    from courtdraw.models.standing import Standing
    from courtdraw.models.team import Team


class TournamentFormat(str, Enum):
    single_elimination = "single_elimination"
    round_robin = "round_robin"
    groups_elimination = "groups_elimination"
    americano = "americano"


class TournamentStatus(str, Enum):
    draft = "draft"
    registration = "registration"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


class TournamentSettings(BaseModel):
    """Scoring and bracket options. Frozen once the bracket has been generated."""

    sets_per_match: int = 3
    games_per_set: int = 6
    tiebreak_at: Optional[int] = 6
    third_place_match: bool = False
    groups_count: Optional[int] = None  # None -> 2 groups
    teams_per_group: Optional[int] = None  # informational only
    qualify_per_group: Optional[int] = 2
    americano_rounds: Optional[int] = None  # None -> team_count - 1
    points_win: int = 3
    points_loss: int = 0
    points_draw: int = 1


class Tournament(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = None
    # Kept as a plain string column so an unknown format can be stored and rejected at generation time
    format: str = Field(sa_column=Column(String, nullable=False))
    status: str = Field(default=TournamentStatus.draft.value)
    max_teams: int = Field(default=16)
    location: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    settings: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_column_kwargs={"onupdate": datetime.utcnow})

    # Relationships (tournament owns everything below)
    teams: List["Team"] = Relationship(
        back_populates="tournament", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
    groups: List["Group"] = Relationship(
        back_populates="tournament", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
    matches: List["Match"] = Relationship(
        back_populates="tournament", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )
    standings: List["Standing"] = Relationship(
        back_populates="tournament", sa_relationship_kwargs={"cascade": "all, delete-orphan"}
    )

    def get_settings(self) -> TournamentSettings:
        return TournamentSettings(**(self.settings or {}))
