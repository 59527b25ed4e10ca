from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from .. import schemas
from ..credentials import CredentialStore
from ..database import get_db
from ..policy import Identity, require_identity
from ..tokens import TokenService

router = APIRouter(prefix="/api/auth", tags=["auth"])


def get_credentials(request: Request) -> CredentialStore:
    return request.app.state.credentials


def get_tokens(request: Request) -> TokenService:
    return request.app.state.tokens


def _auth_response(tokens: TokenService, user) -> schemas.AuthResponse:
    return schemas.AuthResponse(
        token=tokens.issue(user.id, user.username),
        user=schemas.UserOut.model_validate(user),
    )


@router.post("/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    payload: schemas.RegisterRequest,
    db: Session = Depends(get_db),
    credentials: CredentialStore = Depends(get_credentials),
    tokens: TokenService = Depends(get_tokens),
):
    user = credentials.register(db, payload.username, payload.password)
    return _auth_response(tokens, user)


@router.post("/login", response_model=schemas.AuthResponse)
def login(
    payload: schemas.LoginRequest,
    db: Session = Depends(get_db),
    credentials: CredentialStore = Depends(get_credentials),
    tokens: TokenService = Depends(get_tokens),
):
    user = credentials.verify(db, payload.username, payload.password)
    return _auth_response(tokens, user)


@router.get("/me", response_model=schemas.IdentityOut)
def me(identity: Identity = Depends(require_identity)):
    """Echo the identity carried by the presented token."""
    return schemas.IdentityOut(
        user_id=identity.user_id,
        username=identity.username,
        expires_at=identity.claims.expires_at,
    )
