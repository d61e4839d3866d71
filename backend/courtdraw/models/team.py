from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import UniqueConstraint as SAUniqueConstraint
from sqlmodel import Field, Relationship, SQLModel

if TYPE_CHECKING:
    from courtdraw.models.tournament import Tournament


class Team(SQLModel, table=True):
    __table_args__ = (
        # Enforce unique seeds within a tournament (where seed is not null)
        SAUniqueConstraint("tournament_id", "seed", name="uq_tournament_seed"),
        SAUniqueConstraint("tournament_id", "name", name="uq_tournament_team_name"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    tournament_id: int = Field(foreign_key="tournament.id", index=True)
    name: str
    seed: Optional[int] = Field(default=None)  # 1-based seed (1=strongest); None = unseeded
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    tournament: "Tournament" = Relationship(back_populates="teams")
