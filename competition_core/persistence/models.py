"""
Competition core database models
"""

import datetime
from typing import List, Optional

from sqlalchemy import (
    JSON, Boolean, DateTime, Integer, String,
    CheckConstraint, Column, FetchedValue, ForeignKey, UniqueConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base
from .. import schemas


def _timestamp(value: Optional[datetime.datetime]) -> int:
    return int(value.timestamp()) if value is not None else 0


class User(Base):
    """
    Model representing one account which may log in interactively or via OAuth tokens
    """

    __tablename__ = "users"

    id: int = Column(Integer, nullable=False, primary_key=True, autoincrement=True, unique=True)
    name: str = Column(String(255), nullable=False, unique=True)
    hashed_password: str = Column(String(255), nullable=False)
    admin: bool = Column(Boolean, nullable=False, default=False)
    """Flag indicating a site administrator who is able to manage every competition"""
    created: datetime.datetime = Column(DateTime, server_default=func.now())

    relations: List["CompetitionRelation"] = relationship(
        "CompetitionRelation", back_populates="user", cascade="all,delete-orphan"
    )

    @property
    def schema(self) -> schemas.User:
        """
        Pydantic schema representation of the database model that can be sent to clients
        """

        return schemas.User(
            id=self.id,
            name=self.name,
            admin=self.admin,
            created=_timestamp(self.created)
        )

    def __repr__(self) -> str:
        return f"User(id={self.id}, name={self.name!r}, admin={self.admin})"


class Competition(Base):
    """
    Model representing a competition which is managed by its delegates and organizers
    """

    __tablename__ = "competitions"

    id: str = Column(String(32), nullable=False, primary_key=True)
    name: str = Column(String(255), nullable=False)
    short_name: str = Column(String(32), nullable=True)
    visible: bool = Column(Boolean, nullable=False, default=False)
    """Flag determining whether the competition is disclosed to everyone or only to its managers"""
    confirmed: bool = Column(Boolean, nullable=False, default=False)
    """Flag indicating a confirmed competition whose set of events must not change anymore"""
    created: datetime.datetime = Column(DateTime, server_default=func.now())
    modified: datetime.datetime = Column(
        DateTime, server_onupdate=FetchedValue(), server_default=func.now(), onupdate=func.now()
    )

    relations: List["CompetitionRelation"] = relationship(
        "CompetitionRelation", back_populates="competition", cascade="all,delete-orphan"
    )
    events: List["CompetitionEvent"] = relationship(
        "CompetitionEvent",
        back_populates="competition",
        cascade="all,delete-orphan",
        order_by="CompetitionEvent.id"
    )

    def users_with_role(self, role: schemas.RelationRole) -> List[User]:
        return [relation.user for relation in self.relations if relation.role == role.value]

    @property
    def delegates(self) -> List[User]:
        return self.users_with_role(schemas.RelationRole.DELEGATE)

    @property
    def organizers(self) -> List[User]:
        return self.users_with_role(schemas.RelationRole.ORGANIZER)

    @property
    def schema(self) -> schemas.Competition:
        """
        Pydantic schema representation of the database model that can be sent to clients
        """

        return schemas.Competition(
            id=self.id,
            name=self.name,
            short_name=self.short_name,
            visible=self.visible,
            confirmed=self.confirmed,
            relations=[relation.schema for relation in self.relations],
            event_ids=[event.event_id for event in self.events],
            created=_timestamp(self.created),
            modified=_timestamp(self.modified)
        )

    def __repr__(self) -> str:
        return f"Competition(id={self.id!r}, visible={self.visible}, confirmed={self.confirmed})"


class CompetitionRelation(Base):
    """
    Model representing the role of a user for a specific competition
    """

    __tablename__ = "competition_relations"

    id: int = Column(Integer, nullable=False, primary_key=True, autoincrement=True, unique=True)
    competition_id: str = Column(String(32), ForeignKey("competitions.id", ondelete="CASCADE"), nullable=False)
    user_id: int = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    role: str = Column(String(32), nullable=False)

    competition: Competition = relationship("Competition", back_populates="relations")
    user: User = relationship("User", back_populates="relations")

    __table_args__ = (
        UniqueConstraint("competition_id", "user_id", "role", name="single_role_per_user"),
        CheckConstraint("role IN ('delegate', 'organizer')")
    )

    @property
    def schema(self) -> schemas.CompetitionRelation:
        return schemas.CompetitionRelation(user_id=self.user_id, role=self.role)

    def __repr__(self) -> str:
        return "CompetitionRelation(competition_id={!r}, user_id={}, role={!r})".format(
            self.competition_id, self.user_id, self.role
        )


class CompetitionEvent(Base):
    """
    Model representing one event (e.g. 3x3x3 Cube) which is held at a competition
    """

    __tablename__ = "competition_events"

    id: int = Column(Integer, nullable=False, primary_key=True, autoincrement=True, unique=True)
    competition_id: str = Column(String(32), ForeignKey("competitions.id", ondelete="CASCADE"), nullable=False)
    event_id: str = Column(String(6), nullable=False)
    competitor_limit: int = Column(Integer, nullable=True)
    qualification: dict = Column(JSON, nullable=True)
    extensions: list = Column(JSON, nullable=False, default=list)

    competition: Competition = relationship("Competition", back_populates="events")
    rounds: List["Round"] = relationship(
        "Round",
        back_populates="competition_event",
        cascade="all,delete-orphan",
        order_by="Round.number"
    )

    __table_args__ = (
        UniqueConstraint("competition_id", "event_id", name="single_event_per_competition"),
        CheckConstraint("competitor_limit IS NULL OR competitor_limit > 0")
    )

    @property
    def schema(self) -> schemas.WCIFEvent:
        """
        WCIF representation of the event including all of its rounds
        """

        return schemas.WCIFEvent(
            id=self.event_id,
            rounds=[r.schema for r in self.rounds],
            competitor_limit=self.competitor_limit,
            qualification=self.qualification,
            extensions=self.extensions or []
        )

    def __repr__(self) -> str:
        return f"CompetitionEvent(competition_id={self.competition_id!r}, event_id={self.event_id!r})"


class Round(Base):
    """
    Model representing a single round of an event at a competition
    """

    __tablename__ = "rounds"

    id: int = Column(Integer, nullable=False, primary_key=True, autoincrement=True, unique=True)
    competition_event_id: int = Column(
        Integer, ForeignKey("competition_events.id", ondelete="CASCADE"), nullable=False
    )
    number: int = Column(Integer, nullable=False)
    format: str = Column(String(1), nullable=False)
    time_limit: dict = Column(JSON, nullable=True)
    cutoff: dict = Column(JSON, nullable=True)
    advancement_condition: dict = Column(JSON, nullable=True)
    scramble_set_count: int = Column(Integer, nullable=False, default=1)
    extensions: list = Column(JSON, nullable=False, default=list)

    competition_event: CompetitionEvent = relationship("CompetitionEvent", back_populates="rounds")

    __table_args__ = (
        UniqueConstraint("competition_event_id", "number", name="single_round_number_per_event"),
        CheckConstraint("number > 0"),
        CheckConstraint("scramble_set_count > 0")
    )

    @property
    def schema(self) -> schemas.WCIFRound:
        return schemas.WCIFRound(
            id=f"{self.competition_event.event_id}-r{self.number}",
            format=self.format,
            time_limit=self.time_limit,
            cutoff=self.cutoff,
            advancement_condition=self.advancement_condition,
            scramble_set_count=self.scramble_set_count,
            extensions=self.extensions or []
        )

    def __repr__(self) -> str:
        return f"Round(competition_event_id={self.competition_event_id}, number={self.number})"
