"""
Competition core error schemas
"""

from typing import List, Optional

import pydantic


class FieldError(pydantic.BaseModel):
    """
    Single problem found in a structured request body

    The `path` is a JSON pointer into the rejected document (e.g.
    `/0/rounds/1/format`), the `message` describes the violation.
    """

    path: str
    message: str


class APIError(pydantic.BaseModel):
    """
    APIError: shared model for all types of API failures

    Whenever some kind of problem occurs during request handling and some
    exception handler took over, the answer will be some kind of this model.
    The only exception is `500` (Internal Server Error), since they might
    not get caught anymore. Fields of this model can be used for client-side
    error handling and might even be shown to end users in an adequate form.

    The field `error` should always contain a true boolean value. The field
    `status` contains the HTTP status code of the response, if possible. The
    field `request` contains the request path without query parameters or
    fragments, while the `method` field holds the request method (e.g. `GET`).
    The field `repeat` determines whether executing a corrected request may
    be successful. The field `message` contains a short human-readable message
    about the problem. The field `details` contains a string of arbitrary length
    with details about the problem source, if available. The optional field
    `errors` lists field-level problems of a rejected request body.
    """

    error: bool = True
    status: Optional[pydantic.NonNegativeInt] = None
    method: pydantic.constr(max_length=255)
    request: str
    repeat: bool
    message: str
    details: str
    errors: Optional[List[FieldError]] = None
