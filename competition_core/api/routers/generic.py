"""
Competition core router module for generic functionalities
"""

from fastapi import Depends

from ._router import router
from ..dependency import MinimalRequestData
from ... import schemas


@router.get("/health", tags=["Generic"], response_model=schemas.StatusMessage)
async def verify_running_backend(_: MinimalRequestData = Depends(MinimalRequestData)):
    """
    Return 200 OK to only verify that the service and the database session work
    """

    return schemas.StatusMessage(status="ok")
