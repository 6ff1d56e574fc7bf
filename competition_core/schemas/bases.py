"""
Competition core schemas for the base system

This module contains schemas for users, competitions and the
relations between both as well as the authentication responses.
"""

import enum
from typing import List, Optional

import pydantic


@enum.unique
class RelationRole(str, enum.Enum):
    DELEGATE = "delegate"
    ORGANIZER = "organizer"


class Token(pydantic.BaseModel):
    access_token: str
    token_type: str
    scope: str


class SessionInfo(pydantic.BaseModel):
    user_id: pydantic.NonNegativeInt
    csrf_token: str


class StatusMessage(pydantic.BaseModel):
    status: str


class User(pydantic.BaseModel):
    id: pydantic.NonNegativeInt
    name: pydantic.constr(max_length=255)
    admin: bool
    created: pydantic.NonNegativeInt


class CompetitionRelation(pydantic.BaseModel):
    user_id: pydantic.NonNegativeInt
    role: RelationRole


class Competition(pydantic.BaseModel):
    id: pydantic.constr(max_length=32)
    name: pydantic.constr(max_length=255)
    short_name: Optional[pydantic.constr(max_length=32)] = None
    visible: bool
    confirmed: bool
    relations: List[CompetitionRelation]
    event_ids: List[str]
    created: pydantic.NonNegativeInt
    modified: pydantic.NonNegativeInt
