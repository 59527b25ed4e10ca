from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import lifecycle, schemas
from ..database import get_db
from ..policy import AccessPolicy, Identity, get_policy, require_identity

router = APIRouter(prefix="/api/groups", tags=["groups"])


@router.post("", response_model=schemas.GroupOut, status_code=status.HTTP_201_CREATED)
def create_group(
    payload: schemas.GroupCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_identity),
    policy: AccessPolicy = Depends(get_policy),
):
    policy.authorize_group_create(identity)
    return lifecycle.create_group(db, payload.name, identity.user_id)


@router.get("", response_model=List[schemas.GroupOut])
def list_groups(
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_identity),
):
    """Every group is visible to every authenticated user."""
    return lifecycle.list_groups(db)


@router.get("/{group_id}", response_model=schemas.GroupOut)
def get_group(
    group_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_identity),
    policy: AccessPolicy = Depends(get_policy),
):
    group = lifecycle.get_group(db, group_id)
    policy.authorize_group_read(identity, group)
    return group


@router.delete("/{group_id}", response_model=schemas.MessageOut)
def delete_group(
    group_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_identity),
    policy: AccessPolicy = Depends(get_policy),
):
    lifecycle.delete_group(
        db, group_id, guard=lambda group: policy.authorize_group_delete(identity, group)
    )
    return schemas.MessageOut(message="Group deleted successfully")


@router.get("/{group_id}/reminders", response_model=List[schemas.ReminderOut])
def list_group_reminders(
    group_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_identity),
    policy: AccessPolicy = Depends(get_policy),
):
    return lifecycle.list_group_reminders(
        db, group_id, guard=lambda group: policy.authorize_reminder_read(identity, group)
    )


@router.post(
    "/{group_id}/reminders",
    response_model=schemas.ReminderOut,
    status_code=status.HTTP_201_CREATED,
)
def create_reminder(
    group_id: int,
    payload: schemas.ReminderCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_identity),
    policy: AccessPolicy = Depends(get_policy),
):
    return lifecycle.create_reminder(
        db,
        group_id,
        identity.user_id,
        payload,
        guard=lambda group: policy.authorize_reminder_create(identity, group),
    )
