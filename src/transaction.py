import logging
from functools import wraps
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from src.extensions import db
from src.exceptions import LedgerException, ConflictException, InternalException

logger = logging.getLogger("Transaction")

_DEPTH_KEY = "ledger_tx_depth"

def transactional(f):
    """Run a service method as one all-or-nothing unit of work.

    The outermost call commits on success and rolls back on any failure.
    Nested calls join the enclosing transaction instead of committing early.
    Storage errors are re-raised as ConflictException (uniqueness/check
    violations) or InternalException (anything else).
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        session = db.session
        depth = session.info.get(_DEPTH_KEY, 0)
        if depth:
            session.info[_DEPTH_KEY] = depth + 1
            try:
                return f(*args, **kwargs)
            finally:
                session.info[_DEPTH_KEY] = depth

        session.info[_DEPTH_KEY] = 1
        try:
            result = f(*args, **kwargs)
            session.commit()
            return result
        except LedgerException:
            session.rollback()
            raise
        except IntegrityError as e:
            session.rollback()
            logger.warning("%s aborted on constraint violation: %s", f.__qualname__, e.orig)
            raise ConflictException(f"Conflicting update, please retry: {e.orig}") from e
        except SQLAlchemyError as e:
            session.rollback()
            logger.exception("%s aborted on storage failure", f.__qualname__)
            raise InternalException(str(e)) from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.info[_DEPTH_KEY] = 0
    return decorated_function
