import contextlib
import logging
from collections.abc import Iterator

from sqlalchemy.exc import SQLAlchemyError

from src.invites.dtos import InviteRepositoryError

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Log any SQLAlchemy failure and re-raise it as an InviteRepositoryError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.exception("%s failed", operation)
        raise InviteRepositoryError(operation, str(e.__cause__ or e)) from e
