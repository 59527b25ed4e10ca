import logging

from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from . import models
from .errors import DuplicateUsername, InternalFailure, InvalidCredentials, ValidationFailed

logger = logging.getLogger(__name__)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6


def build_password_context(rounds: int = 12) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def get_user_by_username(db: Session, username: str):
    return db.query(models.User).filter(models.User.username == username).first()


class CredentialStore:
    """Persists users with a salted bcrypt hash and checks login attempts."""

    def __init__(self, pwd_context: CryptContext):
        self.pwd_context = pwd_context

    def hash_password(self, password: str) -> str:
        try:
            return self.pwd_context.hash(password)
        except (ValueError, TypeError) as exc:
            raise InternalFailure("Failed to hash password") from exc

    def register(self, db: Session, username: str, password: str) -> models.User:
        if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
            raise ValidationFailed(
                f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters."
            )
        if len(password) < PASSWORD_MIN_LENGTH:
            raise ValidationFailed(
                f"Password must be at least {PASSWORD_MIN_LENGTH} characters."
            )

        if get_user_by_username(db, username) is not None:
            raise DuplicateUsername()

        user = models.User(username=username, password_hash=self.hash_password(password))
        db.add(user)
        try:
            db.commit()
        except IntegrityError as exc:
            # A concurrent registration won the unique constraint.
            db.rollback()
            raise DuplicateUsername() from exc
        except SQLAlchemyError as exc:
            db.rollback()
            raise InternalFailure("Failed to create user") from exc

        db.refresh(user)
        logger.info("Registered user %s (id=%s)", user.username, user.id)
        return user

    def verify(self, db: Session, username: str, password: str) -> models.User:
        user = get_user_by_username(db, username)
        if user is None:
            # Burn a hash so unknown usernames take as long as wrong passwords.
            self.pwd_context.dummy_verify()
            logger.info("Failed login for %s", username)
            raise InvalidCredentials()

        try:
            valid = self.pwd_context.verify(password, user.password_hash)
        except (ValueError, TypeError) as exc:
            raise InternalFailure(f"Unreadable password hash for user {user.id}") from exc
        if not valid:
            logger.info("Failed login for %s", username)
            raise InvalidCredentials()
        return user
