"""
Competition core router module for /api/v0/competitions requests
"""

import logging
from typing import Any, List, Optional

import pydantic
from fastapi import APIRouter, Body, Depends

from ..dependency import LocalRequestData
from .. import helpers
from ...access import MANAGE_COMPETITIONS
from ...misc import wcif
from ...misc.events import EventSyncEngine
from ... import schemas


logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v0/competitions",
    tags=["Competitions"]
)

_competition_id = pydantic.constr(max_length=32)


@router.get(
    "",
    response_model=List[schemas.Competition],
    responses={k: {"model": schemas.APIError} for k in (401, 403)}
)
async def search_for_competitions(
        q: Optional[pydantic.constr(max_length=255)] = None,
        managed_by_me: bool = False,
        limit: Optional[pydantic.NonNegativeInt] = None,
        page: Optional[pydantic.NonNegativeInt] = None,
        descending: bool = False,
        local: LocalRequestData = Depends(LocalRequestData)
):
    """
    Return all visible competitions matching the optional query `q`

    If `managed_by_me` is set, all competitions managed by the caller are
    returned instead, including hidden ones. This requires a login, and
    access tokens additionally need the `manage_competitions` scope.

    * `401`: if `managed_by_me` is set but the request carries no credentials
    * `403`: if `managed_by_me` is set and the access token lacks the scope
    """

    managed_by = None
    if managed_by_me:
        local.access.require_scope(MANAGE_COMPETITIONS, local.principals)
        managed_by = local.access.listing_user_id(local.principals)

    return [
        competition.schema
        for competition in helpers.search_competitions(local, q, managed_by, limit, page, descending)
    ]


@router.get(
    "/{competition_id}",
    response_model=schemas.Competition,
    responses={404: {"model": schemas.APIError}}
)
async def get_competition_by_id(
        competition_id: _competition_id,
        local: LocalRequestData = Depends(LocalRequestData)
):
    """
    Return the competition with the given ID

    Hidden competitions are only returned to callers managing them.

    * `404`: if the competition doesn't exist or is hidden from the caller
    """

    return local.access.resolve_visible(competition_id, local.principals, local.find_competition).schema


@router.get(
    "/{competition_id}/wcif",
    response_model=schemas.WCIF,
    responses={k: {"model": schemas.APIError} for k in (401, 403, 404)}
)
async def get_competition_wcif(
        competition_id: _competition_id,
        local: LocalRequestData = Depends(LocalRequestData)
):
    """
    Return the WCIF of the competition including its persons and events

    * `401`: if the request carries no credentials
    * `403`: if the caller is not allowed to manage the competition
    * `404`: if the competition doesn't exist or is hidden from the caller
    """

    competition = local.access.resolve_visible(competition_id, local.principals, local.find_competition)
    local.access.require_manage(competition, local.principals)
    return wcif.to_wcif(competition)


@router.put(
    "/{competition_id}/wcif/events",
    response_model=schemas.StatusMessage,
    responses={k: {"model": schemas.APIError} for k in (400, 401, 403, 404)}
)
async def update_events_from_wcif(
        competition_id: _competition_id,
        events: Any = Body(...),
        local: LocalRequestData = Depends(LocalRequestData)
):
    """
    Replace all events of the competition by the given list of WCIF events

    Events which are missing in the list (or whose `rounds` are `null`) are removed.
    Events can't be added to or removed from confirmed competitions.

    * `400`: if the events don't match the WCIF schema, contain duplicate or unknown
        events or were rejected by the database (the previous events are kept)
    * `401`: if the request carries no credentials
    * `403`: if the caller is not allowed to manage the competition or the
        session's CSRF token is missing
    * `404`: if the competition doesn't exist or is hidden from the caller
    """

    competition = local.access.resolve_visible(competition_id, local.principals, local.find_competition)
    local.access.require_manage(competition, local.principals)
    EventSyncEngine(local.transactor).replace_events(competition, events)
    logger.info(f"Saved WCIF events of {competition!r}")
    return schemas.StatusMessage(status="Successfully saved WCIF events")
