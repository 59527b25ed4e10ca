"""Group and reminder persistence with the referential rules between them.

Every write runs in one transaction on the caller's session. ``guard``
callables run against the locked entity before it is changed, so an
authorization decision and the write it permits see the same row.
"""

import logging
from contextlib import contextmanager
from typing import Callable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .errors import GroupNotFound, InternalFailure, ReminderHubError, ReminderNotFound
from .schemas import ReminderChanges, ReminderCreate

logger = logging.getLogger(__name__)

GroupGuard = Optional[Callable[[models.Group], None]]
ReminderGuard = Optional[Callable[[models.Reminder], None]]


@contextmanager
def _transaction(db: Session, action: str):
    try:
        yield
        db.commit()
    except ReminderHubError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        raise InternalFailure(f"Failed to {action}") from exc


def _group_query(group_id: int):
    return select(models.Group).where(models.Group.id == group_id)


# Groups


def get_group(db: Session, group_id: int) -> models.Group:
    group = db.execute(_group_query(group_id)).scalar_one_or_none()
    if group is None:
        raise GroupNotFound()
    return group


def list_groups(db: Session) -> List[models.Group]:
    stmt = select(models.Group).order_by(models.Group.id)
    return list(db.execute(stmt).scalars().all())


def create_group(db: Session, name: str, creator_id: int) -> models.Group:
    group = models.Group(name=name, created_by=creator_id)
    with _transaction(db, "create group"):
        db.add(group)
    db.expire(group)
    return get_group(db, group.id)


def delete_group(db: Session, group_id: int, guard: GroupGuard = None) -> None:
    with _transaction(db, "delete group"):
        # Row lock makes concurrent reminder inserts wait for this delete.
        stmt = _group_query(group_id).with_for_update(of=models.Group)
        group = db.execute(stmt).scalar_one_or_none()
        if group is None:
            raise GroupNotFound()
        if guard is not None:
            guard(group)

        result = db.execute(
            delete(models.Reminder).where(models.Reminder.group_id == group_id)
        )
        db.delete(group)
    logger.info("Deleted group %s and %s reminder(s)", group_id, result.rowcount)


# Reminders


def _reminder_query(reminder_id: int):
    return select(models.Reminder).where(models.Reminder.id == reminder_id)


def get_reminder(db: Session, reminder_id: int) -> models.Reminder:
    reminder = db.execute(_reminder_query(reminder_id)).scalar_one_or_none()
    if reminder is None:
        raise ReminderNotFound()
    return reminder


def list_group_reminders(db: Session, group_id: int, guard: GroupGuard = None) -> List[models.Reminder]:
    group = get_group(db, group_id)
    if guard is not None:
        guard(group)
    stmt = (
        select(models.Reminder)
        .where(models.Reminder.group_id == group_id)
        .order_by(models.Reminder.created_at.desc(), models.Reminder.id.desc())
    )
    return list(db.execute(stmt).scalars().all())


def create_reminder(
    db: Session,
    group_id: int,
    creator_id: int,
    fields: ReminderCreate,
    guard: GroupGuard = None,
) -> models.Reminder:
    reminder = models.Reminder(
        title=fields.title,
        description=fields.description,
        due_date=fields.due_date,
        group_id=group_id,
        created_by=creator_id,
        completed=False,
    )
    with _transaction(db, "create reminder"):
        stmt = _group_query(group_id).with_for_update(read=True, of=models.Group)
        group = db.execute(stmt).scalar_one_or_none()
        if group is None:
            raise GroupNotFound()
        if guard is not None:
            guard(group)
        db.add(reminder)
        try:
            db.flush()
        except IntegrityError as exc:
            db.rollback()
            # Only a group deleted since the lookup above is a missing group.
            if db.execute(_group_query(group_id)).scalar_one_or_none() is None:
                raise GroupNotFound() from exc
            raise InternalFailure("Failed to create reminder") from exc
    db.expire(reminder)
    return get_reminder(db, reminder.id)


def update_reminder(
    db: Session,
    reminder_id: int,
    changes: ReminderChanges,
    guard: ReminderGuard = None,
) -> models.Reminder:
    with _transaction(db, "update reminder"):
        stmt = _reminder_query(reminder_id).with_for_update(of=models.Reminder)
        reminder = db.execute(stmt).scalar_one_or_none()
        if reminder is None:
            raise ReminderNotFound()
        if guard is not None:
            guard(reminder)
        for name, value in changes.present().items():
            setattr(reminder, name, value)
    db.expire(reminder)
    return get_reminder(db, reminder_id)


def delete_reminder(db: Session, reminder_id: int, guard: ReminderGuard = None) -> None:
    with _transaction(db, "delete reminder"):
        stmt = _reminder_query(reminder_id).with_for_update(of=models.Reminder)
        reminder = db.execute(stmt).scalar_one_or_none()
        if reminder is None:
            raise ReminderNotFound()
        if guard is not None:
            guard(reminder)
        db.delete(reminder)
    logger.info("Deleted reminder %s", reminder_id)
