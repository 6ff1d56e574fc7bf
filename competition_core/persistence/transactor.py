"""
Competition core helper to serialize modifications of single competitions
"""

import contextlib
import logging
import threading
from typing import Callable, Dict, Iterator, Tuple, TypeVar

from sqlalchemy import select
from sqlalchemy.orm import Session

from . import models
from .. import errors


_T = TypeVar("_T")

# Competition ID -> (lock, number of threads holding or waiting for it)
_locks: Dict[str, Tuple[threading.Lock, int]] = {}
_locks_guard = threading.Lock()

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def _competition_lock(competition_id: str) -> Iterator[None]:
    """
    Hold the process-local lock of the competition, which is dropped once unused
    """

    with _locks_guard:
        lock, users = _locks.get(competition_id, (None, 0))
        if lock is None:
            lock = threading.Lock()
        _locks[competition_id] = (lock, users + 1)

    try:
        with lock:
            yield
    finally:
        with _locks_guard:
            lock, users = _locks[competition_id]
            if users > 1:
                _locks[competition_id] = (lock, users - 1)
            else:
                del _locks[competition_id]


class Transactor:
    """
    Execute functions modifying one competition exclusively and within one database transaction

    The lock is held per competition ID and per process, while the competition row is
    additionally selected ``FOR UPDATE`` so that other processes using the same database
    (on database servers supporting it) wait as well. Whatever the function raises leads
    to a rollback and is propagated unmodified; otherwise, the transaction is committed.
    """

    def __init__(self, session: Session):
        self.session = session

    def with_competition_lock(
            self,
            competition_id: str,
            fn: Callable[[Session, models.Competition], _T]
    ) -> _T:
        """
        Run ``fn`` with the freshly loaded competition while holding the competition's lock

        Any work still pending in the session is committed before the lock is
        acquired, so that the competition is read again while holding the lock.
        Such work is therefore not part of the locked transaction and stays
        committed even if ``fn`` fails, so callers must not leave modifications
        in the session that should only be persisted together with ``fn``.

        :param competition_id: ID of the competition that should be modified
        :param fn: callable accepting the session and the locked competition
        :return: the result of ``fn`` after the transaction has been committed
        :raises PersistenceRejected: when the competition doesn't exist (anymore)
        """

        self.session.commit()
        with _competition_lock(competition_id):
            try:
                competition = self.session.execute(
                    select(models.Competition).filter_by(id=competition_id).with_for_update()
                ).scalar_one_or_none()
                if competition is None:
                    raise errors.PersistenceRejected(
                        "The competition doesn't exist anymore.",
                        f"competition_id={competition_id!r}"
                    )
                result = fn(self.session, competition)
                self.session.commit()
                return result
            except Exception:
                logger.debug(f"Rolling back modification of competition {competition_id!r}")
                self.session.rollback()
                raise
