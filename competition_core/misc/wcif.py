"""
Competition core library for the WCA Competition Interchange Format (WCIF)

This module holds the JSON schema of the WCIF event list, which is used
to validate untrusted payloads before anything else happens, and the
projection of competitions into their WCIF representation.
"""

from typing import Any, Dict, List

from jsonschema import Draft202012Validator

from .. import schemas
from ..persistence import models


EVENT_IDS = frozenset({
    "222", "333", "444", "555", "666", "777",
    "333bf", "333fm", "333oh", "clock", "minx", "pyram",
    "skewb", "sq1", "444bf", "555bf", "333mbf"
})

_EXTENSIONS_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "id": {"type": "string"},
            "specUrl": {"type": "string"},
            "data": {"type": "object"}
        },
        "required": ["id", "specUrl", "data"]
    }
}

ROUND_SCHEMA = {
    "type": "object",
    "properties": {
        "id": {"type": "string", "pattern": "^[a-z0-9]+-r[0-9]+$", "maxLength": 16},
        "format": {"type": "string", "enum": ["1", "2", "3", "a", "m"]},
        "timeLimit": {
            "type": ["object", "null"],
            "properties": {
                "centiseconds": {"type": "integer", "minimum": 1},
                "cumulativeRoundIds": {"type": "array", "items": {"type": "string"}}
            },
            "required": ["centiseconds"]
        },
        "cutoff": {
            "type": ["object", "null"],
            "properties": {
                "numberOfAttempts": {"type": "integer", "minimum": 1},
                "attemptResult": {"type": "integer", "minimum": 1}
            },
            "required": ["numberOfAttempts", "attemptResult"]
        },
        "advancementCondition": {
            "type": ["object", "null"],
            "properties": {
                "type": {"type": "string", "enum": ["ranking", "percent", "attemptResult"]},
                "level": {"type": "integer", "minimum": 1}
            },
            "required": ["type", "level"]
        },
        "scrambleSetCount": {"type": "integer", "minimum": 1, "maximum": schemas.MAX_INTEGER},
        "extensions": _EXTENSIONS_SCHEMA
    },
    "required": ["id", "format"]
}

EVENT_SCHEMA = {
    "type": "object",
    "properties": {
        "id": {"type": "string", "maxLength": 6},
        "rounds": {"type": ["array", "null"], "items": ROUND_SCHEMA},
        "competitorLimit": {"type": ["integer", "null"], "minimum": 1, "maximum": schemas.MAX_INTEGER},
        "qualification": {"type": ["object", "null"]},
        "extensions": _EXTENSIONS_SCHEMA
    },
    "required": ["id"]
}

EVENTS_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "array",
    "items": EVENT_SCHEMA
}

_events_validator = Draft202012Validator(EVENTS_SCHEMA)


def _pointer(path) -> str:
    return "/" + "/".join(str(p) for p in path)


def validate_events(payload: Any) -> List[schemas.FieldError]:
    """
    Validate an untrusted WCIF event list, returning all problems found (if any)
    """

    return sorted(
        (
            schemas.FieldError(path=_pointer(error.absolute_path), message=error.message)
            for error in _events_validator.iter_errors(payload)
        ),
        key=lambda e: e.path
    )


def to_wcif(competition: models.Competition) -> schemas.WCIF:
    """
    Project the competition with its managers and held events into the WCIF
    """

    roles: Dict[int, List[str]] = {}
    users: Dict[int, models.User] = {}
    for relation in competition.relations:
        roles.setdefault(relation.user_id, []).append(relation.role)
        users[relation.user_id] = relation.user

    return schemas.WCIF(
        id=competition.id,
        name=competition.name,
        short_name=competition.short_name or competition.name,
        persons=[
            schemas.WCIFPerson(wca_user_id=user_id, name=users[user_id].name, roles=sorted(roles[user_id]))
            for user_id in sorted(users)
        ],
        events=[event.schema for event in competition.events]
    )
