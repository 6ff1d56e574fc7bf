"""
Ownership oracle for competitions backed by the database
"""

from sqlalchemy.orm import Session

from ..persistence import models
from .. import schemas


MANAGING_ROLES = frozenset({schemas.RelationRole.DELEGATE.value, schemas.RelationRole.ORGANIZER.value})


class RelationOwnership:
    """
    Decide whether a user owns a competition as one of its delegates or organizers

    Site administrators are treated as owners of every competition.
    """

    def __init__(self, session: Session):
        self.session = session

    def __call__(self, user_id: int, competition: models.Competition) -> bool:
        for relation in competition.relations:
            if relation.user_id == user_id and relation.role in MANAGING_ROLES:
                return True
        user = self.session.get(models.User, user_id)
        return user is not None and user.admin
