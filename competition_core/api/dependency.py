"""
Competition core API dependency library
"""

import logging
import secrets
from typing import Generator, Optional

import sqlalchemy.exc
from fastapi import Depends, Request, Response
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from . import auth
from .base import Unauthorized
from .. import errors
from ..access import AccessDecisionEngine, Principals, RequestContext, resolve
from ..access.ownership import RelationOwnership
from ..persistence import database, models
from ..persistence.transactor import Transactor
from ..settings import Settings


SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})

logger = logging.getLogger(__name__)

_bearer = OAuth2PasswordBearer(
    tokenUrl="oauth/token",
    scopes={
        "public": "Read public competition data",
        "manage_competitions": "Manage the competitions you are a delegate or organizer of"
    },
    auto_error=False
)


def get_session() -> Generator[Session, None, bool]:
    """
    Return a generator to handle database sessions gracefully
    """

    session = database.get_new_session()

    try:
        yield session
        session.flush()
    except sqlalchemy.exc.DBAPIError as exc:
        details = (exc.statement or "").replace("\n", "")
        logger.exception(f"{type(exc).__name__}: {exc.orig} @ {details!r}")
        session.rollback()
        raise
    except sqlalchemy.exc.SQLAlchemyError as exc:
        logger.exception(f"{type(exc).__name__}: {str(exc)}")
        session.rollback()
        raise
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
    return True


async def get_request_context(request: Request, token: Optional[str] = Depends(_bearer)) -> RequestContext:
    """
    Authenticate the bearer token and the session cookie of the request, if present

    An invalid bearer token is rejected, while an invalid or expired session cookie
    is simply ignored. Requests with a session cookie and an unsafe method must
    carry the session's CSRF token in the ``X-CSRF-Token`` header.
    """

    token_claims = None
    if token is not None:
        try:
            token_claims = auth.decode_token(token, auth.ACCESS_TOKEN_TYPE)
        except (JWTError, ValueError) as exc:
            raise Unauthorized("Failed to validate token successfully", str(exc)) from exc

    session_claims = None
    cookie = request.cookies.get(auth.SESSION_COOKIE)
    if cookie:
        try:
            session_claims = auth.decode_token(cookie, auth.SESSION_TOKEN_TYPE)
        except (JWTError, ValueError) as exc:
            logger.debug(f"Ignoring invalid session cookie: {exc}")

    if session_claims is not None and request.method.upper() not in SAFE_METHODS:
        expected = str(session_claims.get("csrf", ""))
        if not expected or not secrets.compare_digest(request.headers.get(auth.CSRF_HEADER, ""), expected):
            raise errors.InvalidAuthenticityToken()

    return RequestContext(session_claims=session_claims, token_claims=token_claims)


class MinimalRequestData:
    """
    Collection of minimal dependencies used by endpoints without access decisions
    """

    def __init__(
            self,
            request: Request,
            response: Response,
            session: Session = Depends(get_session)
    ):
        self.request = request
        self.response = response
        self.headers = request.headers
        self.session = session

        self._config: Optional[Settings] = getattr(request.app.state, "settings", None)

    @property
    def config(self) -> Settings:
        if self._config is None:
            self._config = Settings()
        return self._config


class LocalRequestData(MinimalRequestData):
    """
    Collection of core dependencies used by all competition path operations

    This class stores references to various important objects that
    will almost certainly be used by request handlers (path operations),
    most notably the principals of the request and the access decision
    engine using the database session as ownership oracle. Note that any
    dependency added here will be added to the OpenAPI definition, if it
    refers to a Query, Header, Path or Cookie.
    """

    def __init__(
            self,
            request: Request,
            response: Response,
            session: Session = Depends(get_session),
            context: RequestContext = Depends(get_request_context)
    ):
        super().__init__(request, response, session)
        self.context = context
        self.principals: Principals = resolve(context)
        self.access = AccessDecisionEngine(RelationOwnership(session))
        self._transactor: Optional[Transactor] = None

    @property
    def transactor(self) -> Transactor:
        if self._transactor is None:
            self._transactor = Transactor(self.session)
        return self._transactor

    def find_competition(self, competition_id: str) -> Optional[models.Competition]:
        return self.session.get(models.Competition, competition_id)
