"""Stateless bearer tokens: HS256-signed JWTs carrying the user identity."""

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import jws, jwt
from jose.exceptions import JWSError
from jose.utils import base64url_decode, base64url_encode
from pydantic import BaseModel, ValidationError

from .errors import MissingToken, TokenBadSignature, TokenExpired, TokenMalformed

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class TokenClaims(BaseModel):
    user_id: int
    username: str
    iat: int
    exp: int

    @property
    def issued_at(self) -> datetime:
        return datetime.fromtimestamp(self.iat, tz=timezone.utc)

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.exp, tz=timezone.utc)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def extract_bearer_token(header_value: Optional[str], require_prefix: bool = False) -> str:
    """Pull the token out of an ``Authorization`` header value.

    A value without the ``Bearer `` prefix is used as-is unless
    ``require_prefix`` is set.
    """
    if not header_value:
        raise MissingToken()
    if header_value.startswith(BEARER_PREFIX):
        token = header_value[len(BEARER_PREFIX):]
    elif require_prefix:
        raise TokenMalformed()
    else:
        token = header_value
    token = token.strip()
    if not token:
        raise MissingToken()
    return token


class TokenService:
    def __init__(self, secret: str, ttl: timedelta = timedelta(days=7), algorithm: str = "HS256"):
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self.ttl = ttl
        self.algorithm = algorithm

    def issue(self, user_id: int, username: str, now: Optional[datetime] = None) -> str:
        issued_at = now or _utcnow()
        claims = {
            "user_id": user_id,
            "username": username,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.ttl).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def verify(self, token: str, now: Optional[datetime] = None) -> TokenClaims:
        try:
            header = jws.get_unverified_header(token)
        except JWSError as exc:
            logger.info("Rejected token: malformed (%s)", exc)
            raise TokenMalformed() from exc
        if header.get("alg") != self.algorithm:
            logger.info("Rejected token: unexpected algorithm %r", header.get("alg"))
            raise TokenMalformed()

        # Lenient base64 decoding ignores the spare bits of the last character.
        signature_segment = token.rsplit(".", 1)[-1]
        canonical = base64url_encode(base64url_decode(signature_segment.encode("utf-8")))
        if canonical.decode("ascii") != signature_segment:
            logger.info("Rejected token: non-canonical signature encoding")
            raise TokenBadSignature()

        # The token parses, so a failure here is a signature mismatch.
        try:
            payload = jws.verify(token, self._secret, algorithms=[self.algorithm])
        except JWSError as exc:
            logger.info("Rejected token: bad signature")
            raise TokenBadSignature() from exc

        try:
            claims = TokenClaims.model_validate(json.loads(payload))
        except (ValueError, ValidationError) as exc:
            logger.info("Rejected token: unreadable claims")
            raise TokenMalformed() from exc

        current = now or _utcnow()
        if current.timestamp() > claims.exp:
            logger.info("Rejected token for user %s: expired", claims.user_id)
            raise TokenExpired()
        return claims
