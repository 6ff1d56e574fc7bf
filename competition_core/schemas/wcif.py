"""
Competition core schemas for the WCA Competition Interchange Format

Only the parts of the format dealing with events and rounds of a competition
(plus the persons managing it) are modelled here. The schemas accept both
the camelCase wire names and the snake_case attribute names.
"""

from typing import Any, Dict, List, Literal, Optional

import pydantic
from pydantic.alias_generators import to_camel


# Largest value accepted for integers stored in plain database columns
MAX_INTEGER = 2147483647


class _WCIFModel(pydantic.BaseModel):
    model_config = pydantic.ConfigDict(alias_generator=to_camel, populate_by_name=True)


class WCIFExtension(_WCIFModel):
    id: str
    spec_url: str
    data: Dict[str, Any]


class WCIFTimeLimit(_WCIFModel):
    centiseconds: pydantic.PositiveInt
    cumulative_round_ids: List[str] = []


class WCIFCutoff(_WCIFModel):
    number_of_attempts: pydantic.PositiveInt
    attempt_result: pydantic.PositiveInt


class WCIFAdvancementCondition(_WCIFModel):
    type: Literal["ranking", "percent", "attemptResult"]
    level: pydantic.PositiveInt


class WCIFRound(_WCIFModel):
    id: pydantic.constr(max_length=16)
    format: Literal["1", "2", "3", "a", "m"]
    time_limit: Optional[WCIFTimeLimit] = None
    cutoff: Optional[WCIFCutoff] = None
    advancement_condition: Optional[WCIFAdvancementCondition] = None
    scramble_set_count: pydantic.conint(ge=1, le=MAX_INTEGER) = 1
    extensions: List[WCIFExtension] = []


class WCIFEvent(_WCIFModel):
    """
    Event of a competition

    Rounds set to ``None`` (``null`` on the wire) mark an event that is
    listed but not held; such events are not stored. Omitting the rounds
    means that the event is held, but no rounds have been planned yet.
    """

    id: pydantic.constr(max_length=6)
    rounds: Optional[List[WCIFRound]] = []
    competitor_limit: Optional[pydantic.conint(ge=1, le=MAX_INTEGER)] = None
    qualification: Optional[Dict[str, Any]] = None
    extensions: List[WCIFExtension] = []


class WCIFPerson(_WCIFModel):
    wca_user_id: pydantic.NonNegativeInt
    name: str
    roles: List[str]


class WCIF(_WCIFModel):
    format_version: str = "1.0"
    id: str
    name: str
    short_name: str
    persons: List[WCIFPerson]
    events: List[WCIFEvent]
