"""
Competition core router module for authentication

Two ways of authentication are supported: OAuth access tokens carrying
explicit scopes (used by third-party applications) and interactive sessions
stored in a cookie (used by the website), which are not limited by scopes.
"""

import logging
import secrets

from argon2.exceptions import VerificationError
from fastapi import Depends, Response
from fastapi.security import OAuth2PasswordRequestForm

from ._router import router
from ..base import BadRequest, Unauthorized
from ..dependency import LocalRequestData, MinimalRequestData
from .. import auth
from ...access import KNOWN_SCOPES, PUBLIC
from ...persistence import models
from ... import schemas


logger = logging.getLogger(__name__)


async def _authenticate(data: OAuth2PasswordRequestForm, local: MinimalRequestData) -> models.User:
    logger.debug(f"Login request using username {data.username!r}...")
    try:
        return await auth.check_user_credentials(data.username, data.password, local.session)
    except (ValueError, VerificationError) as exc:
        raise Unauthorized("Invalid credentials", f"username={data.username!r}, password=?") from exc


@router.post("/oauth/token", tags=["Authentication"], response_model=schemas.Token)
async def issue_access_token(
        data: OAuth2PasswordRequestForm = Depends(),
        local: MinimalRequestData = Depends(MinimalRequestData)
):
    """
    Login using username and password via the OAuth Password Flow to get an access token

    The space-separated `scope` form field requests the scopes of the token,
    which defaults to `public` only. Managing competitions via the token
    requires the `manage_competitions` scope. A 400 error will be returned
    if an unknown scope has been requested.

    See RFC 6749, section 1.3.3, for more details.
    """

    scopes = set(data.scopes) or {PUBLIC}
    unknown = scopes.difference(KNOWN_SCOPES)
    if unknown:
        raise BadRequest(f"Unknown scope(s) requested: {', '.join(sorted(unknown))}", f"scope={data.scopes!r}")

    user = await _authenticate(data, local)
    logger.info(f"Issuing access token for user {user.id} with scopes {sorted(scopes)}")
    return schemas.Token(
        access_token=auth.create_access_token(user.id, scopes, local.config.server.token_expiration_minutes),
        token_type="bearer",
        scope=" ".join(sorted(scopes))
    )


@router.post("/session", tags=["Authentication"], response_model=schemas.SessionInfo)
async def create_session(
        data: OAuth2PasswordRequestForm = Depends(),
        local: MinimalRequestData = Depends(MinimalRequestData)
):
    """
    Login interactively using username and password to get a session cookie

    The returned `csrf_token` must be sent in the `X-CSRF-Token` header
    of every modifying request that's authenticated by the session cookie.
    """

    user = await _authenticate(data, local)
    csrf_token = secrets.token_urlsafe(24)
    minutes = local.config.server.session_expiration_minutes
    local.response.set_cookie(
        auth.SESSION_COOKIE,
        auth.create_session_token(user.id, csrf_token, minutes),
        max_age=minutes * 60,
        httponly=True,
        secure=local.config.server.secure_cookies,
        samesite="lax"
    )
    return schemas.SessionInfo(user_id=user.id, csrf_token=csrf_token)


@router.delete("/session", tags=["Authentication"], status_code=204)
async def delete_session(_: LocalRequestData = Depends(LocalRequestData)):
    """
    Logout by removing the session cookie

    A valid session requires its CSRF token in the `X-CSRF-Token` header.
    """

    response = Response(status_code=204)
    response.delete_cookie(auth.SESSION_COOKIE)
    return response
