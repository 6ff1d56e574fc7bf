"""
Generic helper library for the core REST API
"""

from typing import Callable, List, Optional

import pydantic
import sqlalchemy

from .dependency import LocalRequestData
from ..access.ownership import RelationOwnership
from ..persistence import models


def search_competitions(
        local: LocalRequestData,
        query: Optional[str] = None,
        managed_by: Optional[int] = None,
        limit: Optional[pydantic.NonNegativeInt] = None,
        page: Optional[pydantic.NonNegativeInt] = None,
        descending: Optional[bool] = False
) -> List[models.Competition]:
    """
    Return the competitions matching the query, either all visible ones or all managed by a user

    :param local: contextual local data
    :param query: optional case-insensitive text which must be part of the ID or name
    :param managed_by: optional user ID; if given, the competitions owned by this user
        are returned (including hidden ones), otherwise only visible competitions
    :param limit: limit the number of total results
    :param page: select a page of results, based on the page size of `limit`; if no
        limit is given, the page will be ignored since the page size is unknown
    :param descending: reverse the order of results (ordered by competition ID)
    :return: list of all competitions that passed the filters
    """

    statement = sqlalchemy.select(models.Competition)
    if query:
        pattern = f"%{query.lower()}%"
        statement = statement.where(sqlalchemy.or_(
            sqlalchemy.func.lower(models.Competition.id).like(pattern),
            sqlalchemy.func.lower(models.Competition.name).like(pattern)
        ))
    if managed_by is None:
        statement = statement.where(models.Competition.visible.is_(True))
    order = models.Competition.id.desc() if descending else models.Competition.id.asc()
    competitions = local.session.execute(statement.order_by(order)).scalars().all()

    item_filter: Callable[[models.Competition], bool] = lambda _: True
    if managed_by is not None:
        owns = RelationOwnership(local.session)
        item_filter = lambda c: owns(managed_by, c)
    results = [competition for competition in competitions if item_filter(competition)]

    if limit and page:
        return results[limit*page:limit*(page+1)]
    elif limit:
        return results[:limit]
    return results
