"""FastAPI dependencies wiring the access core per request."""

from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from marketplace_core.config import Settings
from marketplace_core.database import get_db_session
from marketplace_core.downloads.service import DownloadService
from marketplace_core.downloads.tokens import DownloadTokenService
from marketplace_core.entitlements.service import EntitlementEvaluator
from marketplace_core.entitlements.store import SqlMarketplaceReader
from marketplace_core.platform.audit import AuditLogger, SqlAuditWriter
from marketplace_core.platform.errors import AuthenticationError

USER_ID_HEADER = "X-User-Id"


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_current_user_id(x_user_id: Optional[str] = Header(None, alias=USER_ID_HEADER)) -> str:
    """Caller identity as established by the upstream auth layer."""
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise AuthenticationError("User ID required")
    return user_id


def get_reader(db: Session = Depends(get_db_session)) -> SqlMarketplaceReader:
    return SqlMarketplaceReader(db)


def get_audit_logger(db: Session = Depends(get_db_session)) -> AuditLogger:
    return AuditLogger(SqlAuditWriter(db))


def get_evaluator(
    request: Request,
    reader: SqlMarketplaceReader = Depends(get_reader),
) -> EntitlementEvaluator:
    return EntitlementEvaluator(reader, clock=request.app.state.clock)


def get_token_service(request: Request) -> DownloadTokenService:
    return request.app.state.token_service


def get_download_service(
    evaluator: EntitlementEvaluator = Depends(get_evaluator),
    reader: SqlMarketplaceReader = Depends(get_reader),
    tokens: DownloadTokenService = Depends(get_token_service),
    audit: AuditLogger = Depends(get_audit_logger),
) -> DownloadService:
    return DownloadService(evaluator, reader, tokens, audit)
