"""
Competition core exceptions raised by the access decisions and the event synchronization

Any exception of this module carries the HTTP status code, a short message
that may be shown to end users and optional details for debugging. The API
layer converts them into the shared ``APIError`` model, so they may be raised
by code that doesn't know anything about HTTP at all.
"""

import json
from typing import Any, Dict, Iterable, List, Optional

from . import schemas


class CompetitionCoreError(Exception):
    """
    Base class for all expected (terminal) failures of a single request
    """

    status_code: int = 500
    repeat: bool = False
    headers: Optional[Dict[str, Any]] = None

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or ""

    @property
    def errors(self) -> Optional[List[schemas.FieldError]]:
        return None


class AccessError(CompetitionCoreError):
    """
    Base class for rejected access to a competition
    """


class AuthenticationRequired(AccessError):
    status_code = 401
    repeat = True
    headers = {"WWW-Authenticate": "Bearer"}

    def __init__(self):
        super().__init__("Please log in to perform this operation.")


class MissingScope(AccessError):
    status_code = 403
    repeat = True

    def __init__(self, scope: str):
        super().__init__(f"Missing required scope {scope!r}.", f"scope={scope!r}")
        self.scope = scope


class NotPermitted(AccessError):
    status_code = 403

    def __init__(self):
        super().__init__("Not authorized to manage competition.")


class NotFound(AccessError):
    """
    Exception for absent competitions as well as hidden competitions the caller may not see

    Both cases must be indistinguishable, so the exception depends on the requested ID only.
    """

    status_code = 404

    def __init__(self, competition_id: str):
        super().__init__(f"Competition with id {competition_id!r} not found.")
        self.competition_id = competition_id


class InvalidAuthenticityToken(AccessError):
    status_code = 403

    def __init__(self):
        super().__init__("Invalid authenticity token. Reload the page and try again.")


class SyncError(CompetitionCoreError):
    """
    Base class for rejected updates of the events of a competition
    """

    status_code = 400
    repeat = True


class SchemaInvalid(SyncError):
    def __init__(self, problems: Iterable[schemas.FieldError]):
        self.problems = list(problems)
        super().__init__(
            "The WCIF events don't match the expected schema.",
            json.dumps([p.model_dump() for p in self.problems])
        )

    @property
    def errors(self) -> List[schemas.FieldError]:
        return self.problems


class EventConversionError(SyncError):
    """
    Base class for schema-valid WCIF events which can't be converted to domain events
    """


class DuplicateEvents(EventConversionError):
    def __init__(self, event_ids: Iterable[str]):
        self.event_ids = list(event_ids)
        super().__init__(
            "Every event may be given only once.",
            f"Duplicate event ids: {', '.join(self.event_ids)}"
        )


class UnknownEvents(EventConversionError):
    def __init__(self, event_ids: Iterable[str]):
        self.event_ids = list(event_ids)
        super().__init__(
            "Unknown events can't be held at a competition.",
            f"Unknown event ids: {', '.join(self.event_ids)}"
        )


class InvalidRounds(EventConversionError):
    def __init__(self, event_id: str, expected: List[str], actual: List[str]):
        self.event_id = event_id
        super().__init__(
            f"The rounds of event {event_id!r} are not numbered consecutively.",
            f"Expected round ids {expected!r}, got {actual!r}"
        )


class PersistenceRejected(SyncError):
    """
    Exception for updates rejected while committing them (the previous state is kept)
    """

    repeat = False
