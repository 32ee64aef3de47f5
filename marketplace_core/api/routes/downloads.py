"""
Secure download API.

RULES:
- Only entitled active members receive a download token
- No token is issued for a resource whose file is missing (404)
- Tokens live 10 minutes and are checked again at transfer time
- Invalid, forged and expired tokens get the same 401 response
- Every decision is audited; audit failures never change the response
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from marketplace_core.api.dependencies import get_current_user_id, get_download_service, get_settings
from marketplace_core.config import Settings
from marketplace_core.downloads.errors import (
    DownloadDeniedError,
    DownloadUnavailableError,
    InvalidDownloadTokenError,
    ResourceNotFoundError,
)
from marketplace_core.downloads.service import DownloadService
from marketplace_core.platform.errors import (
    AuthenticationError,
    NotFoundError,
    PermissionDeniedError,
    ServiceUnavailableError,
)

router = APIRouter(prefix="/api/downloads", tags=["downloads"])

INVALID_TOKEN_MESSAGE = "Invalid or expired download token"


class DownloadTokenResponse(BaseModel):
    token: str
    expires_at: datetime
    expires_in: int
    download_url: str


@router.post("/{resource_id}", response_model=DownloadTokenResponse)
async def create_download_token(
    resource_id: str,
    user_id: str = Depends(get_current_user_id),
    service: DownloadService = Depends(get_download_service),
):
    """Issue a short-lived download token if the caller may download the resource."""
    try:
        issued = service.request_download(user_id, resource_id)
    except DownloadDeniedError:
        raise PermissionDeniedError("You do not have access to this resource")
    except ResourceNotFoundError:
        raise NotFoundError("Resource", resource_id)
    except DownloadUnavailableError:
        raise ServiceUnavailableError()

    return DownloadTokenResponse(
        token=issued.token,
        expires_at=issued.expires_at,
        expires_in=issued.expires_in_seconds,
        download_url=f"{router.prefix}/secure/{issued.token}",
    )


@router.get("/secure/{token}")
async def redeem_download_token(
    token: str,
    service: DownloadService = Depends(get_download_service),
    settings: Settings = Depends(get_settings),
):
    """Verify the token, re-check access and redirect to the file."""
    try:
        download = service.redeem(token)
    except InvalidDownloadTokenError:
        raise AuthenticationError(INVALID_TOKEN_MESSAGE)
    except DownloadDeniedError:
        raise PermissionDeniedError("Access denied")
    except ResourceNotFoundError as e:
        raise NotFoundError("Resource", e.resource_id)
    except DownloadUnavailableError:
        raise ServiceUnavailableError()

    return RedirectResponse(
        url=f"{settings.file_base_url}/{download.storage_path.lstrip('/')}",
        status_code=307,
    )
