"""
Signed, short-lived download tokens.

A token says "this user may fetch this product until this instant". It is
a compact HS256 JWT and is not stored anywhere: validity comes only from
the signature and the embedded expiry.

Security requirements:
- Lifetime: 10 minutes (DOWNLOAD_TOKEN_LIFETIME_MINUTES)
- Signature, issuer, audience and required claims are verified
- Expiry and issue time are checked against the service clock, not the host clock
- Every failure is reported as the same INVALID_TOKEN value
- No revocation list; a token is valid for its whole window
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Literal, Union

import jwt
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from marketplace_core.utils import Clock, utc_now

logger = logging.getLogger(__name__)

DOWNLOAD_TOKEN_LIFETIME_MINUTES = 10
REQUIRED_CLAIMS = ["sub", "product_id", "exp", "iat", "jti", "iss", "aud"]


class DownloadTokenConfig(BaseModel):
    """Configuration for download token signing."""
    secret: str = Field(..., min_length=1, repr=False)
    algorithm: Literal["HS256", "HS384", "HS512"] = "HS256"
    lifetime_minutes: int = Field(DOWNLOAD_TOKEN_LIFETIME_MINUTES, gt=0)
    issuer: str = "marketplace-downloads"
    audience: str = "download"


class DownloadTokenClaims(BaseModel):
    """Decoded download token payload."""
    sub: str = Field(..., min_length=1)  # user_id
    product_id: str = Field(..., min_length=1)
    jti: str
    iss: str
    aud: str
    iat: int
    exp: int


class IssuedDownloadToken(BaseModel):
    """Result of token issuance."""
    token: str
    user_id: str
    resource_id: str
    jti: str
    issued_at: datetime
    expires_at: datetime

    @property
    def expires_in_seconds(self) -> int:
        """Seconds of validity left at issuance, measured on the service clock."""
        return max(0, int((self.expires_at - self.issued_at).total_seconds()))


class DownloadGrant(BaseModel):
    """A verified token: the user may fetch the resource until expires_at."""
    model_config = ConfigDict(frozen=True)

    valid: Literal[True] = True
    user_id: str
    resource_id: str
    jti: str
    expires_at: datetime


class InvalidToken(BaseModel):
    """Uniform verification failure. Malformed, forged and expired all look alike."""
    model_config = ConfigDict(frozen=True)

    valid: Literal[False] = False


INVALID_TOKEN = InvalidToken()

TokenVerification = Union[DownloadGrant, InvalidToken]


class DownloadTokenService:
    """Issues and verifies download tokens. Touches no storage."""

    def __init__(self, config: DownloadTokenConfig, *, clock: Clock = utc_now):
        self.config = config
        self._clock = clock

    def issue(self, user_id: str, resource_id: str) -> IssuedDownloadToken:
        """
        Issue a token for (user_id, resource_id) expiring lifetime_minutes from now.

        The caller must have run the entitlement check first.

        Raises:
            ValueError: If user_id or resource_id is empty
        """
        user_id = str(user_id or "").strip()
        resource_id = str(resource_id or "").strip()
        if not user_id:
            raise ValueError("user_id is required")
        if not resource_id:
            raise ValueError("resource_id is required")

        now = self._clock()
        exp = int((now + timedelta(minutes=self.config.lifetime_minutes)).timestamp())
        jti = str(uuid.uuid4())

        payload = {
            "sub": user_id,
            "product_id": resource_id,
            "jti": jti,
            "iss": self.config.issuer,
            "aud": self.config.audience,
            "iat": int(now.timestamp()),
            "exp": exp,
        }
        token = jwt.encode(payload, self.config.secret, algorithm=self.config.algorithm)

        expires_at = datetime.fromtimestamp(exp, tz=timezone.utc)
        logger.info(
            "Issued download token",
            extra={
                "user_id": user_id,
                "resource_id": resource_id,
                "jti": jti,
                "expires_at": expires_at.isoformat(),
            },
        )
        return IssuedDownloadToken(
            token=token,
            user_id=user_id,
            resource_id=resource_id,
            jti=jti,
            issued_at=datetime.fromtimestamp(int(now.timestamp()), tz=timezone.utc),
            expires_at=expires_at,
        )

    def verify(self, token: str) -> TokenVerification:
        """
        Verify a token.

        Returns:
            DownloadGrant when signature, structure and freshness all check
            out, otherwise INVALID_TOKEN
        """
        if not isinstance(token, str) or not token.strip():
            return INVALID_TOKEN

        try:
            payload = jwt.decode(
                token.strip(),
                self.config.secret,
                algorithms=[self.config.algorithm],
                issuer=self.config.issuer,
                audience=self.config.audience,
                # exp and iat are checked below against the service clock
                options={"require": REQUIRED_CLAIMS, "verify_exp": False, "verify_iat": False},
            )
            claims = DownloadTokenClaims(**payload)
        except (jwt.PyJWTError, ValidationError, TypeError, ValueError) as e:
            logger.debug("Download token rejected", extra={"failure": type(e).__name__})
            return INVALID_TOKEN

        now = self._clock().timestamp()
        if claims.exp <= now:
            logger.debug("Download token rejected", extra={"failure": "expired", "jti": claims.jti})
            return INVALID_TOKEN
        if claims.iat > now:
            logger.debug("Download token rejected", extra={"failure": "issued_in_future", "jti": claims.jti})
            return INVALID_TOKEN

        return DownloadGrant(
            user_id=claims.sub,
            resource_id=claims.product_id,
            jti=claims.jti,
            expires_at=datetime.fromtimestamp(claims.exp, tz=timezone.utc),
        )
