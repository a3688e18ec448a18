"""
Service-layer exceptions.

Not-found is never an exception: lookups return None and deletes return False.
"""

import logging
import re
from contextlib import contextmanager
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

_UNIQUE_FAILED = re.compile(r"UNIQUE constraint failed: (\w+)\.(\w+)")


class ServiceError(Exception):
    """Base class for errors raised by the service layer."""


class ConflictError(ServiceError):
    """A unique constraint (slug, name, email) was violated."""

    def __init__(self, message: str, table: Optional[str] = None, column: Optional[str] = None):
        super().__init__(message)
        self.table = table
        self.column = column


class InvalidReferenceError(ServiceError):
    """A foreign key pointed at a user, category or tag that does not exist."""


class InvalidFieldError(ServiceError):
    """A field value that can never be stored, such as a title with no slug."""


def translate_integrity_error(exc: IntegrityError) -> Optional[ServiceError]:
    """Map a storage integrity failure to the matching service error.

    Returns None for anything other than a unique or foreign-key violation.
    """
    message = str(exc.orig)
    match = _UNIQUE_FAILED.search(message)
    if match:
        table, column = match.groups()
        return ConflictError(f"A {table} row with this {column} already exists", table, column)
    if "FOREIGN KEY constraint failed" in message:
        return InvalidReferenceError("Referenced author, category or tag does not exist")
    return None


@contextmanager
def integrity_guard(db: Session):
    """Roll back and raise a ServiceError when the wrapped writes hit a constraint."""
    try:
        yield
    except IntegrityError as exc:
        db.rollback()
        error = translate_integrity_error(exc)
        if error is None:
            raise
        logger.warning(f"Write rejected: {error}")
        raise error from exc
