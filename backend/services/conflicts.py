import logging
from functools import partial

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel
from tenacity import retry, retry_if_exception_type, stop_after_attempt

from services.errors import InternalError

logger = logging.getLogger("tapin.conflicts")


class PairConflict(InternalError):
    """A concurrent request inserted the same unique pair first.

    Raised out of the retry only when the re-run conflicts again.
    """

    default_message = "Concurrent update, please retry"


def insert_unique(session: Session, row: SQLModel) -> SQLModel:
    """Insert a row guarded by a unique key, PairConflict if somebody won"""
    session.add(row)
    try:
        session.commit()
    except IntegrityError as e:
        session.rollback()
        logger.debug(f"Unique conflict inserting {type(row).__name__}: {e.orig}")
        raise PairConflict() from e
    return row


def before_retry_log(logger, log_level):
    def log_it(retry_state):
        fn_name = retry_state.fn.__qualname__
        logger.log(
            log_level,
            f"Retrying {fn_name} against the row of the concurrent request",
        )

    return log_it


# Re-run the whole check-then-write once: the second run sees the winner's row
conflict_retry = partial(
    retry,
    retry=retry_if_exception_type(PairConflict),
    stop=stop_after_attempt(2),
    before_sleep=before_retry_log(logger, logging.DEBUG),
    reraise=True,
)
