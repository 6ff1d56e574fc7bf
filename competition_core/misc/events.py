"""
Competition core library to synchronize the events of a competition from WCIF

A synchronization is a short pipeline: validate the untrusted payload against
the WCIF events schema, convert it into events while checking the domain
rules and finally replace the whole set of events of the competition in one
transaction. Each stage raises a ``SyncError``, so the database is never
touched before the payload has been accepted completely.
"""

import logging
from typing import Any, Collection, List, Sequence

import pydantic
import sqlalchemy.exc
from sqlalchemy.orm import Session

from . import wcif
from .. import errors, schemas
from ..persistence import models
from ..persistence.transactor import Transactor


logger = logging.getLogger(__name__)


def _dump(value: Any) -> Any:
    if isinstance(value, pydantic.BaseModel):
        return value.model_dump(by_alias=True)
    if isinstance(value, list):
        return [_dump(v) for v in value]
    return value


def make_event_model(event: schemas.WCIFEvent) -> models.CompetitionEvent:
    return models.CompetitionEvent(
        event_id=event.id,
        competitor_limit=event.competitor_limit,
        qualification=event.qualification,
        extensions=_dump(event.extensions),
        rounds=[
            models.Round(
                number=number,
                format=r.format,
                time_limit=_dump(r.time_limit),
                cutoff=_dump(r.cutoff),
                advancement_condition=_dump(r.advancement_condition),
                scramble_set_count=r.scramble_set_count,
                extensions=_dump(r.extensions)
            )
            for number, r in enumerate(event.rounds or [], start=1)
        ]
    )


class EventSyncEngine:
    """
    Replace the events of competitions by WCIF event lists

    :param transactor: transaction helper bound to the session that should be used
    :param event_ids: collection of all legal event IDs
    """

    def __init__(self, transactor: Transactor, event_ids: Collection[str] = wcif.EVENT_IDS):
        self._transactor = transactor
        self._event_ids = event_ids

    @staticmethod
    def validate(raw_payload: Any) -> Sequence[Any]:
        problems = wcif.validate_events(raw_payload)
        if problems:
            raise errors.SchemaInvalid(problems)
        return raw_payload

    def convert(self, records: Sequence[Any]) -> List[schemas.WCIFEvent]:
        """
        Convert validated WCIF records into events, enforcing the domain rules

        :raises SchemaInvalid: when a record can't be parsed (which the schema should prevent)
        :raises DuplicateEvents: when one event ID has been given more than once
        :raises UnknownEvents: when an event ID is not known
        :raises InvalidRounds: when the round IDs don't match their event and position
        """

        try:
            events = [schemas.WCIFEvent.model_validate(record) for record in records]
        except pydantic.ValidationError as exc:
            raise errors.SchemaInvalid([
                schemas.FieldError(path="/" + "/".join(str(p) for p in e["loc"]), message=e["msg"])
                for e in exc.errors()
            ]) from exc

        event_ids = [event.id for event in events]
        duplicates = sorted({event_id for event_id in event_ids if event_ids.count(event_id) > 1})
        if duplicates:
            raise errors.DuplicateEvents(duplicates)
        unknown = sorted(set(event_ids).difference(self._event_ids))
        if unknown:
            raise errors.UnknownEvents(unknown)

        for event in events:
            actual = [r.id for r in event.rounds or []]
            expected = [f"{event.id}-r{number}" for number in range(1, len(actual) + 1)]
            if actual != expected:
                raise errors.InvalidRounds(event.id, expected, actual)
        return events

    @staticmethod
    def _swap(events: List[schemas.WCIFEvent], session: Session, competition: models.Competition):
        current_ids = {event.event_id for event in competition.events}
        new_ids = {event.id for event in events}
        if competition.confirmed and current_ids != new_ids:
            raise errors.PersistenceRejected(
                "Events can't be added to or removed from a confirmed competition.",
                f"added={sorted(new_ids - current_ids)!r}, removed={sorted(current_ids - new_ids)!r}"
            )

        competition.events.clear()
        session.flush()
        competition.events.extend(make_event_model(event) for event in events)
        session.flush()

    def replace_events(self, competition: models.Competition, raw_payload: Any) -> None:
        """
        Replace all events of the competition by the events of the untrusted WCIF payload

        Events missing in the payload are removed, as well as events whose rounds are
        ``null``. On any failure, the previous events of the competition stay untouched.

        :param competition: the competition whose events should be replaced
        :param raw_payload: decoded JSON document which should be a list of WCIF events
        :raises SyncError: when the payload is invalid or the update was rejected
        """

        events = self.convert(self.validate(raw_payload))
        held = [event for event in events if event.rounds is not None]

        try:
            self._transactor.with_competition_lock(competition.id, lambda s, c: self._swap(held, s, c))
        except (sqlalchemy.exc.IntegrityError, sqlalchemy.exc.DataError) as exc:
            logger.info(f"Database rejected the events of {competition!r}: {exc.orig}")
            raise errors.PersistenceRejected("The events couldn't be saved.", str(exc.orig)) from exc

        logger.debug(f"Replaced events of {competition!r} by {[event.id for event in held]}")
