"""
Download tokens and the download flow.

- DownloadTokenService: issue / verify signed 10-minute tokens
- DownloadService: entitlement check, issuance, audited redemption
"""

from marketplace_core.downloads.errors import (
    DownloadDeniedError,
    DownloadError,
    DownloadUnavailableError,
    InvalidDownloadTokenError,
    ResourceNotFoundError,
)
from marketplace_core.downloads.service import DownloadService, RedeemedDownload
from marketplace_core.downloads.tokens import (
    DOWNLOAD_TOKEN_LIFETIME_MINUTES,
    INVALID_TOKEN,
    DownloadGrant,
    DownloadTokenConfig,
    DownloadTokenService,
    InvalidToken,
    IssuedDownloadToken,
)

__all__ = [
    "DownloadDeniedError",
    "DownloadError",
    "DownloadUnavailableError",
    "InvalidDownloadTokenError",
    "ResourceNotFoundError",
    "DownloadService",
    "RedeemedDownload",
    "DOWNLOAD_TOKEN_LIFETIME_MINUTES",
    "INVALID_TOKEN",
    "DownloadGrant",
    "DownloadTokenConfig",
    "DownloadTokenService",
    "InvalidToken",
    "IssuedDownloadToken",
]
