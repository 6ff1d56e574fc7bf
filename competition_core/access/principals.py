"""
Resolution of the principals of a request from already authenticated claims
"""

import dataclasses
from typing import Any, FrozenSet, Iterator, Mapping, Optional, Union


@dataclasses.dataclass(frozen=True)
class SessionUser:
    """
    User logged in interactively via the session cookie
    """

    id: int


@dataclasses.dataclass(frozen=True)
class TokenUser:
    """
    User acting via an OAuth access token, restricted to the token's scopes
    """

    id: int
    scopes: FrozenSet[str] = frozenset()


Principal = Union[SessionUser, TokenUser]


@dataclasses.dataclass(frozen=True)
class Principals:
    """
    Zero, one or two principals of a single request (session and token may coexist)
    """

    session: Optional[SessionUser] = None
    token: Optional[TokenUser] = None

    @property
    def authenticated(self) -> bool:
        return self.session is not None or self.token is not None

    def __iter__(self) -> Iterator[Principal]:
        for principal in (self.session, self.token):
            if principal is not None:
                yield principal


@dataclasses.dataclass(frozen=True)
class RequestContext:
    """
    Verified claims of the session cookie and the bearer token of a request, if present
    """

    session_claims: Optional[Mapping[str, Any]] = None
    token_claims: Optional[Mapping[str, Any]] = None


def _subject(claims: Optional[Mapping[str, Any]]) -> Optional[int]:
    if not claims:
        return None
    try:
        return int(claims.get("sub"))
    except (TypeError, ValueError):
        return None


def _scopes(claims: Mapping[str, Any]) -> FrozenSet[str]:
    scope = claims.get("scope")
    if not isinstance(scope, str):
        return frozenset()
    return frozenset(scope.split())


def resolve(context: RequestContext) -> Principals:
    """
    Extract the principals of a request, never failing

    Missing or malformed claims (e.g. a subject that's no user ID) just
    lead to an absent principal, which is valid input for the decisions.
    """

    session_user_id = _subject(context.session_claims)
    token_user_id = _subject(context.token_claims)
    return Principals(
        session=SessionUser(session_user_id) if session_user_id is not None else None,
        token=TokenUser(token_user_id, _scopes(context.token_claims)) if token_user_id is not None else None
    )
