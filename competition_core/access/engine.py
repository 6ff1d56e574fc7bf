"""
Access decision engine for managing and disclosing competitions

Session principals are authorized by ownership alone. Token principals
are strictly more restricted: they additionally need the scope to manage
competitions. If a request carries both, either of them suffices.
"""

import logging
from typing import Callable, Optional

from . import principals as _principals
from .. import errors
from ..persistence import models


PUBLIC = "public"
MANAGE_COMPETITIONS = "manage_competitions"
KNOWN_SCOPES = frozenset({PUBLIC, MANAGE_COMPETITIONS})

OwnershipOracle = Callable[[int, models.Competition], bool]
CompetitionFinder = Callable[[str], Optional[models.Competition]]

logger = logging.getLogger(__name__)


def has_scope(token: Optional[_principals.TokenUser], scope: str) -> bool:
    return token is not None and scope in token.scopes


def is_disclosable(competition: models.Competition, can_manage: bool) -> bool:
    """
    Decide whether a competition may be disclosed, given the caller's manage verdict
    """

    if competition.visible:
        return True
    return can_manage


class AccessDecisionEngine:
    """
    Single source of truth whether principals may manage (or even see) a competition

    :param owns: ownership oracle telling whether a user ID owns a competition
    :param manage_scope: scope a token principal needs in addition to ownership
    """

    def __init__(self, owns: OwnershipOracle, manage_scope: str = MANAGE_COMPETITIONS):
        self._owns = owns
        self._manage_scope = manage_scope

    def can_manage(self, competition: models.Competition, principals: _principals.Principals) -> bool:
        session, token = principals.session, principals.token
        if session is not None and self._owns(session.id, competition):
            return True
        return token is not None and has_scope(token, self._manage_scope) and self._owns(token.id, competition)

    @staticmethod
    def require_authenticated(principals: _principals.Principals):
        if not principals.authenticated:
            raise errors.AuthenticationRequired()

    def require_scope(self, scope: str, principals: _principals.Principals):
        """
        Require the scope from token principals, while session principals never need scopes

        :raises AuthenticationRequired: when the request carries no principal at all
        :raises MissingScope: when a token principal is present but lacks the scope
        """

        self.require_authenticated(principals)
        if principals.token is not None and not has_scope(principals.token, scope):
            logger.debug(f"Token of user {principals.token.id} lacks the scope {scope!r}")
            raise errors.MissingScope(scope)

    def require_manage(self, competition: models.Competition, principals: _principals.Principals):
        """
        :raises AuthenticationRequired: when the request carries no principal at all
        :raises NotPermitted: when no principal of the request may manage the competition
        """

        self.require_authenticated(principals)
        if not self.can_manage(competition, principals):
            logger.debug(f"Denied management of {competition!r} for {principals!r}")
            raise errors.NotPermitted()

    def resolve_visible(
            self,
            competition_id: str,
            principals: _principals.Principals,
            find: CompetitionFinder
    ) -> models.Competition:
        """
        Return the competition if it exists and may be disclosed to the principals

        :param competition_id: ID of the requested competition
        :param principals: principals of the current request
        :param find: lookup function returning the competition or None
        :return: the competition found by the lookup function
        :raises NotFound: when the competition doesn't exist or is hidden from the principals,
            where both cases lead to exactly the same exception
        """

        competition = find(competition_id)
        if competition is not None and not is_disclosable(competition, self.can_manage(competition, principals)):
            competition = None
        if competition is None:
            raise errors.NotFound(competition_id)
        return competition

    @staticmethod
    def listing_user_id(principals: _principals.Principals) -> Optional[int]:
        """
        Return the user ID whose managed competitions should be listed (the token user first)
        """

        for principal in (principals.token, principals.session):
            if principal is not None:
                return principal.id
        return None
