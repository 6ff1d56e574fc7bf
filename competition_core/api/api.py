"""
Competition core REST API definitions

The API serves the competitions and their WCIF event data. Public data
is readable without any authentication, while managing a competition
requires either an access token with the `manage_competitions` scope
or an interactive session of a delegate or organizer of the competition.
"""

import logging.config
from typing import Any, Callable, Dict, Optional, Union

import fastapi
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import auth, base
from .routers import router
from .. import errors, schemas, __version__
from ..persistence import database
from ..settings import Settings


DEFAULT_EXCEPTION_HANDLERS = {
    StarletteHTTPException: base.APIException.handle,
    RequestValidationError: base.handle_request_validation_error,
    errors.CompetitionCoreError: base.handle_core_error,
    Exception: base.handle_generic_exception
}


API_DOC = """Competition core REST API definition version 0

Two kinds of credentials are accepted. Logging in with username and password
via `POST /oauth/token` yields an access token that should be included in the
`Authorization` header with the type `Bearer`. Its granted scopes are requested
with the `scope` form field (`public` and `manage_competitions` are available).
Logging in via `POST /session` sets a session cookie instead, which is not
limited by scopes, but requires the returned CSRF token in the `X-CSRF-Token`
header of every modifying request.

The API always returns JSON-encoded data. All error responses use the schema
of the `APIError`. The following `4xx` error responses are used in the API:

1. The `400` (Bad Request) error response is returned for malformed requests
   and rejected WCIF data. Schema violations are listed in the `errors` field,
   where every item points to the offending value using a JSON pointer.
2. The `401` (Unauthorized) error response is returned if a request needs
   credentials but didn't carry any, or if the bearer token is invalid.
3. The `403` (Forbidden) error response is returned if the credentials are
   not sufficient, i.e. the token lacks a scope, the user doesn't manage the
   competition or the CSRF token of a session is missing or wrong.
4. The `404` (Not Found) error response is returned if a competition doesn't
   exist. Hidden competitions yield exactly the same response to users who
   are not allowed to see them.

Take a look at the individual methods and endpoints for more information.
"""


def _make_app(
        title: str,
        version: str,
        description: str,
        exception_handlers: Optional[Dict[Any, Callable]] = None,
        root_redirect: bool = True,
        responses: Optional[Dict[Union[int, str], Dict[str, Any]]] = None,
        **kwargs
) -> fastapi.FastAPI:
    app = fastapi.FastAPI(
        title=title,
        version=version,
        description=description,
        docs_url="/docs",
        redoc_url="/redoc",
        responses=responses or {400: {"model": schemas.APIError}},
        **kwargs
    )

    handlers = exception_handlers or DEFAULT_EXCEPTION_HANDLERS
    for exc in handlers:
        app.add_exception_handler(exc, handlers[exc])

    if root_redirect:
        @app.get("/", include_in_schema=False)
        async def redirect_root():
            return fastapi.responses.RedirectResponse("./docs")

    return app


def create_app(
        settings: Optional[Settings] = None,
        configure_logging: bool = True,
        configure_database: bool = True
) -> fastapi.FastAPI:
    """
    Create a new ``FastAPI`` instance using the specified settings and switches

    This function is conveniently used to allow overwriting the settings
    before launching the application as well as to allow multiple ``FastAPI``
    instances in one program, which in turn makes unit testing much easier.

    :param settings: optional Settings instance (would be created if not present)
    :param configure_logging: switch whether to configure logging
    :param configure_database: switch whether to configure the database
    :return: new ``FastAPI`` instance
    """

    if settings is None:
        settings = Settings()

    if configure_logging:
        logging.config.dictConfig(settings.logging.model_dump())
    logger = logging.getLogger(__name__)
    logger.debug("Starting application...")

    if configure_database:
        database.init(settings.database.connection, settings.database.debug_sql)
    auth.configure(settings.server)

    app = _make_app(
        title="Competition core REST API",
        version=__version__,
        description=API_DOC,
        responses={400: {"model": schemas.APIError}, 401: {"model": schemas.APIError}}
    )
    app.state.settings = settings
    app.include_router(router)

    logger.info("Application ready")
    return app


class APIWrapper:
    """
    Wrapper class around the FastAPI main object, accessible via the ``app`` property

    There should be only one global instance of this object, which should only
    export its functionality to hold the ``app`` property. This wrapper can be
    used to allow easy command-line usage via ``uvicorn`` calls. Example:

    .. code-block::

        uvicorn competition_core.api:api.app
    """

    def __init__(self):
        self._app: Optional[fastapi.FastAPI] = None

    def get_app(self) -> fastapi.FastAPI:
        return self.app

    def set_app(self, application: fastapi.FastAPI):
        if not isinstance(application, fastapi.FastAPI):
            raise TypeError
        self._app = application

    @property
    def app(self) -> fastapi.FastAPI:
        """
        Return the ``app`` instance (or create it with default settings if it doesn't exist)
        """

        if self._app is not None:
            return self._app
        self._app = create_app()
        return self._app


api = APIWrapper()
