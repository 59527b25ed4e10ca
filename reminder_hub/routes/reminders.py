from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import lifecycle, schemas
from ..database import get_db
from ..policy import AccessPolicy, Identity, get_policy, require_identity

router = APIRouter(prefix="/api/reminders", tags=["reminders"])


@router.put("/{reminder_id}", response_model=schemas.ReminderOut)
def update_reminder(
    reminder_id: int,
    payload: schemas.ReminderUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_identity),
    policy: AccessPolicy = Depends(get_policy),
):
    """Apply only the fields present in the body; absent fields keep their value."""
    return lifecycle.update_reminder(
        db,
        reminder_id,
        payload.to_changes(),
        guard=lambda reminder: policy.authorize_reminder_change(identity, reminder),
    )


@router.delete("/{reminder_id}", response_model=schemas.MessageOut)
def delete_reminder(
    reminder_id: int,
    db: Session = Depends(get_db),
    identity: Identity = Depends(require_identity),
    policy: AccessPolicy = Depends(get_policy),
):
    lifecycle.delete_reminder(
        db,
        reminder_id,
        guard=lambda reminder: policy.authorize_reminder_change(identity, reminder),
    )
    return schemas.MessageOut(message="Reminder deleted successfully")
