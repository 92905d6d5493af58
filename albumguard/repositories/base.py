"""Shared helpers for the SQLModel stores."""

import functools
import logging

from sqlalchemy.exc import SQLAlchemyError

from albumguard.errors import StoreFailure

logger = logging.getLogger(__name__)


def store_call(func):
    """Roll back and re-raise SQLAlchemy errors as StoreFailure."""

    @functools.wraps(func)
    def wrapper(self, *args, **kwargs):
        try:
            return func(self, *args, **kwargs)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("%s.%s failed: %s", type(self).__name__, func.__name__, e)
            raise StoreFailure(f"{func.__name__} failed") from e

    return wrapper
