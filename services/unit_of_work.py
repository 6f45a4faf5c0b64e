import functools
import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from errors import Conflict, TransientStorageError
from models import db

logger = logging.getLogger(__name__)


@contextmanager
def unit_of_work(description, conflict_message=None):
    """Run the enclosed statements as a single transaction.

    Commits when the block exits normally. On any exception the session is
    rolled back before the error propagates, so no partial write is ever
    visible. Storage errors are translated into domain errors:
    ``IntegrityError`` becomes ``Conflict`` and any other ``SQLAlchemyError``
    becomes ``TransientStorageError``.
    """
    session = db.session
    try:
        yield session
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.warning("Rolled back %s: integrity error (%s)", description, e.orig)
        raise Conflict(conflict_message) from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Rolled back %s: storage error", description)
        raise TransientStorageError() from e
    except Exception:
        session.rollback()
        logger.warning("Rolled back %s", description)
        raise


def reads_storage(func):
    """Surface storage failures on read paths as ``TransientStorageError``."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.exception("Storage read failed in %s", func.__name__)
            raise TransientStorageError() from e
    return wrapper
