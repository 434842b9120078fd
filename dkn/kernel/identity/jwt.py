"""
Bearer-token verification for the external identity provider.

Tokens are HS256 JWTs signed with the provider's shared secret and carry
Supabase-style claims: ``sub`` (account id), ``email``, ``aud`` and a
``user_metadata`` object with optional ``name`` and ``region``.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel

from dkn.config import get_settings
from dkn.logging_config import get_logger

logger = get_logger(__name__)


class IdentityClaims(BaseModel):
    """Verified identity extracted from a bearer token."""
    
    sub: uuid.UUID
    email: str
    name: Optional[str] = None
    region: Optional[str] = None
    exp: datetime


class TokenVerifier:
    """
    Verifies provider tokens. Can also issue tokens with the same secret,
    which is only meant for local development and tests.
    """
    
    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        audience: Optional[str] = None,
    ):
        settings = get_settings()
        self.secret_key = secret_key or settings.jwt_secret
        self.algorithm = algorithm or settings.jwt_algorithm
        self.audience = audience or settings.jwt_audience
        self.expire_minutes = settings.access_token_expire_minutes
    
    def issue(
        self,
        subject: uuid.UUID,
        email: str,
        name: Optional[str] = None,
        region: Optional[str] = None,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        """Issue a signed token for the given identity."""
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=self.expire_minutes))
        metadata = {}
        if name:
            metadata["name"] = name
        if region:
            metadata["region"] = region
        payload = {
            "sub": str(subject),
            "email": email,
            "aud": self.audience,
            "user_metadata": metadata,
            "exp": expire,
            "iat": now,
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
    
    def verify(self, token: str) -> Optional[IdentityClaims]:
        """
        Verify and decode a token.
        
        Returns:
            IdentityClaims if the token is valid, None otherwise
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                audience=self.audience,
            )
            metadata = payload.get("user_metadata") or {}
            return IdentityClaims(
                sub=uuid.UUID(payload["sub"]),
                email=payload["email"],
                name=metadata.get("name"),
                region=metadata.get("region"),
                exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            )
        except (JWTError, KeyError, ValueError) as exc:
            logger.warning("Rejected bearer token: %s", type(exc).__name__)
            return None


# Default verifier instance
_verifier: Optional[TokenVerifier] = None


def get_token_verifier() -> TokenVerifier:
    """Get or create the default token verifier."""
    global _verifier
    if _verifier is None:
        _verifier = TokenVerifier()
    return _verifier


def verify_access_token(token: str) -> Optional[IdentityClaims]:
    """Verify a bearer token with the default verifier."""
    return get_token_verifier().verify(token)
