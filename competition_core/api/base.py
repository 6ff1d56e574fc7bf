"""
Competition core REST API base library
"""

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .. import errors, schemas


logger = logging.getLogger(__name__)


def _error_response(
        request: Request,
        status_code: int,
        repeat: bool,
        message: str,
        details: str,
        headers: Optional[Dict[str, Any]] = None,
        field_errors: Optional[list] = None
) -> JSONResponse:
    return JSONResponse(jsonable_encoder(schemas.APIError(
        status=status_code,
        method=request.method,
        request=request.url.path,
        repeat=repeat,
        message=message,
        details=details,
        errors=field_errors
    )), status_code=status_code, headers=headers)


async def handle_generic_exception(request: Request, _: Exception):
    logger.exception("Unhandled exception caught in base exception handler!")
    return _error_response(
        request,
        500,
        False,
        "Unexpected server error. The requested action wasn't completed successfully.",
        ""
    )


async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    msgs = "\n".join(["\t" + error["msg"] for error in exc.errors()])
    message = f"Failed to process the request:\n{msgs}\nYou may want to file a bug report."
    return _error_response(request, 400, False, message, str(exc.errors()))


async def handle_core_error(request: Request, exc: errors.CompetitionCoreError) -> Response:
    """
    Handle the expected failures of access decisions and event synchronizations
    """

    logger.debug(
        f"{type(exc).__name__}: {exc.message} @ '{request.method} "
        f"{request.url.path}' (details: {exc.detail})"
    )
    return _error_response(
        request,
        exc.status_code,
        exc.repeat,
        exc.message,
        exc.detail,
        headers=exc.headers,
        field_errors=exc.errors
    )


class APIException(HTTPException):
    """
    Base class for any kind of generic API exception
    """

    def __init__(
            self,
            status_code: int,
            detail: Optional[str],
            repeat: bool = False,
            message: Optional[str] = None,
            headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.repeat = repeat
        self.message = message

    @classmethod
    async def handle(cls, request: Request, exc: StarletteHTTPException) -> Response:
        """
        Handle exceptions in a generic way to produce APIError models
        """

        status_code = getattr(exc, "status_code", 500)
        repeat = getattr(exc, "repeat", False)
        message = getattr(exc, "message", None) or exc.__class__.__name__

        if not isinstance(exc, StarletteHTTPException):
            logger.error("Invalid exception class for base handler")

        logger.debug(
            f"{type(exc).__name__}: {message} @ '{request.method} "
            f"{request.url.path}' (details: {exc.detail})"
        )
        return _error_response(
            request,
            status_code,
            repeat,
            message,
            "" if exc.detail is None else str(exc.detail),
            headers=getattr(exc, "headers", None)
        )


class BadRequest(APIException):
    """
    Exception when the user probably messed something up

    The `message` field must be user-friendly and not too informative!
    """

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(
            status_code=400,
            detail=detail,
            repeat=True,
            message=message
        )


class Unauthorized(APIException):
    """
    Exception for failed logins and invalid bearer tokens
    """

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(
            status_code=401,
            detail=detail,
            repeat=False,
            message=message,
            headers={"WWW-Authenticate": "Bearer"}
        )
