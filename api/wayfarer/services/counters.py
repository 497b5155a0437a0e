"""
Denormalized counter arithmetic.

All counter changes are expressed as SQL (``col = col + n``) so concurrent
writers never lose updates, and decrements never take a counter below zero.
Callers run these inside ``atomic(db)`` next to the edge change that
justifies them.
"""

from __future__ import annotations

from sqlalchemy import case
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import InstrumentedAttribute

from .. import models


def increment(db: Session, column: InstrumentedAttribute, *criteria, by: int = 1) -> int:
    """Add ``by`` to ``column`` on the rows matching ``criteria``. Returns rows touched."""
    return (
        db.query(column.class_)
        .filter(*criteria)
        .update({column: column + by}, synchronize_session=False)
    )


def decrement(db: Session, column: InstrumentedAttribute, *criteria, by: int = 1) -> int:
    """Subtract ``by`` from ``column``, flooring at zero. Rows already at zero are left alone."""
    return (
        db.query(column.class_)
        .filter(*criteria, column > 0)
        .update(
            {column: case((column > by, column - by), else_=0)},
            synchronize_session=False,
        )
    )


def increment_user_stat(db: Session, user_id: int, column: InstrumentedAttribute, by: int = 1) -> int:
    return increment(db, column, models.UserStatistics.user_id == user_id, by=by)


def decrement_user_stat(db: Session, user_id: int, column: InstrumentedAttribute, by: int = 1) -> int:
    return decrement(db, column, models.UserStatistics.user_id == user_id, by=by)


def read_counter(db: Session, column: InstrumentedAttribute, *criteria) -> int:
    """Read a counter straight from the store, bypassing the identity map."""
    return db.query(column).filter(*criteria).scalar() or 0


def ensure_user_statistics(db: Session, user_id: int) -> models.UserStatistics:
    """Return the user's statistics row, creating a zeroed one if it is missing."""
    stats = (
        db.query(models.UserStatistics)
        .filter(models.UserStatistics.user_id == user_id)
        .first()
    )
    if stats is None:
        stats = models.UserStatistics(user_id=user_id)
        db.add(stats)
        db.flush()
    return stats
