import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Header, Request

from . import models
from .errors import Forbidden
from .tokens import TokenClaims, extract_bearer_token

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    user_id: int
    username: str
    claims: TokenClaims


class AccessPolicy:
    """Decides whether an authenticated identity may act on a group or reminder.

    With ``enforce_ownership`` off every authenticated identity may act on
    every entity. With it on, deleting a group and updating or deleting a
    reminder are limited to the entity's creator; reads and creates stay open.
    """

    def __init__(self, enforce_ownership: bool = False):
        self.enforce_ownership = enforce_ownership

    def authorize_group_create(self, identity: Identity) -> None:
        return None

    def authorize_group_read(self, identity: Identity, group: models.Group) -> None:
        return None

    def authorize_group_delete(self, identity: Identity, group: models.Group) -> None:
        self._require_creator(identity, group.created_by, "group", group.id)

    def authorize_reminder_create(self, identity: Identity, group: models.Group) -> None:
        return None

    def authorize_reminder_read(self, identity: Identity, group: models.Group) -> None:
        return None

    def authorize_reminder_change(self, identity: Identity, reminder: models.Reminder) -> None:
        self._require_creator(identity, reminder.created_by, "reminder", reminder.id)

    def _require_creator(self, identity: Identity, creator_id: int, kind: str, entity_id: int) -> None:
        if not self.enforce_ownership or identity.user_id == creator_id:
            return
        logger.warning(
            "User %s denied on %s %s owned by user %s",
            identity.user_id,
            kind,
            entity_id,
            creator_id,
        )
        raise Forbidden(f"Only the creator may modify this {kind}.")


def require_identity(
    request: Request,
    authorization: Optional[str] = Header(default=None),
) -> Identity:
    """Verify the bearer token before any route logic runs."""
    state = request.app.state
    token = extract_bearer_token(
        authorization, require_prefix=state.settings.require_bearer_prefix
    )
    claims = state.tokens.verify(token)
    return Identity(user_id=claims.user_id, username=claims.username, claims=claims)


def get_policy(request: Request) -> AccessPolicy:
    return request.app.state.policy
