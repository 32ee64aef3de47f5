"""
Download flow: entitlement check -> file lookup -> token issuance -> redemption.

Every decision is audited. Audit failures never change the outcome. A
token is only issued, and a redemption only recorded, once the resource's
stored file has been found.
"""

import logging
from dataclasses import dataclass

from marketplace_core.downloads.errors import (
    DownloadDeniedError,
    DownloadUnavailableError,
    InvalidDownloadTokenError,
    ResourceNotFoundError,
)
from marketplace_core.downloads.tokens import DownloadGrant, DownloadTokenService, IssuedDownloadToken
from marketplace_core.entitlements.errors import STORAGE_ERROR_CODE
from marketplace_core.entitlements.models import EntitlementDecision, ResourceRecord
from marketplace_core.entitlements.service import EntitlementEvaluator
from marketplace_core.entitlements.store import MarketplaceReader
from marketplace_core.platform.audit import ANONYMOUS_ACTOR, AuditAction, AuditLogger

logger = logging.getLogger(__name__)

SUBJECT_RESOURCE = "resource"
SUBJECT_TOKEN = "download_token"


@dataclass(frozen=True)
class RedeemedDownload:
    """A verified, re-authorized token and the file it unlocks."""

    grant: DownloadGrant
    resource: ResourceRecord

    @property
    def storage_path(self) -> str:
        return self.resource.storage_path


class DownloadService:
    """Composes the evaluator, resource reader, token service and audit logger."""

    def __init__(
        self,
        evaluator: EntitlementEvaluator,
        reader: MarketplaceReader,
        tokens: DownloadTokenService,
        audit: AuditLogger,
    ):
        self.evaluator = evaluator
        self.reader = reader
        self.tokens = tokens
        self.audit = audit

    def request_download(self, user_id: str, resource_id: str) -> IssuedDownloadToken:
        """
        Check entitlement and issue a download token.

        Raises:
            DownloadDeniedError: If the user may not download the resource
            ResourceNotFoundError: If the resource or its file is gone
            DownloadUnavailableError: If the resource could not be loaded
        """
        decision = self.evaluator.evaluate_download(user_id, resource_id)
        if not decision.allowed:
            self._record_decision(user_id, resource_id, decision, stage="request")
            raise DownloadDeniedError(user_id, resource_id, decision.reason)

        self._resolve_resource(user_id, resource_id, stage="request")
        self._record_decision(user_id, resource_id, decision, stage="request")

        issued = self.tokens.issue(user_id, resource_id)
        self.audit.record(
            user_id,
            AuditAction.TOKEN_ISSUE,
            SUBJECT_RESOURCE,
            resource_id,
            {"jti": issued.jti, "expires_at": issued.expires_at.isoformat()},
        )
        return issued

    def redeem(self, token: str) -> RedeemedDownload:
        """
        Verify a token at transfer time, re-run the entitlement check and
        locate the file.

        Raises:
            InvalidDownloadTokenError: If the token is malformed, forged or expired
            DownloadDeniedError: If entitlement was lost since issuance
            ResourceNotFoundError: If the resource or its file is gone
            DownloadUnavailableError: If the resource could not be loaded
        """
        result = self.tokens.verify(token)
        if not result.valid:
            self.audit.record(ANONYMOUS_ACTOR, AuditAction.TOKEN_REJECT, SUBJECT_TOKEN)
            raise InvalidDownloadTokenError()

        decision = self.evaluator.evaluate_download(result.user_id, result.resource_id)
        if not decision.allowed:
            self._record_decision(result.user_id, result.resource_id, decision, stage="redeem")
            raise DownloadDeniedError(result.user_id, result.resource_id, decision.reason)

        resource = self._resolve_resource(result.user_id, result.resource_id, stage="redeem")
        self.audit.record(
            result.user_id,
            AuditAction.DOWNLOAD_REDEEM,
            SUBJECT_RESOURCE,
            result.resource_id,
            {"jti": result.jti, "reason": decision.reason},
        )
        return RedeemedDownload(grant=result, resource=resource)

    def _resolve_resource(self, user_id: str, resource_id: str, *, stage: str) -> ResourceRecord:
        try:
            resource = self.reader.get_resource(resource_id)
        except Exception:
            logger.exception("Resource lookup failed during download", extra={"resource_id": resource_id})
            self.audit.record(
                user_id,
                AuditAction.DOWNLOAD_DENY,
                SUBJECT_RESOURCE,
                resource_id,
                {"reason": "storage_error", "stage": stage, "error_code": STORAGE_ERROR_CODE},
            )
            raise DownloadUnavailableError(resource_id)

        if resource is None or not resource.storage_path:
            self.audit.record(
                user_id,
                AuditAction.DOWNLOAD_DENY,
                SUBJECT_RESOURCE,
                resource_id,
                {"reason": "resource_missing", "stage": stage},
            )
            raise ResourceNotFoundError(resource_id)
        return resource

    def _record_decision(
        self,
        user_id: str,
        resource_id: str,
        decision: EntitlementDecision,
        *,
        stage: str,
    ) -> None:
        action = AuditAction.DOWNLOAD_ALLOW if decision.allowed else AuditAction.DOWNLOAD_DENY
        metadata = {"reason": decision.reason, "stage": stage}
        if decision.error_code:
            metadata["error_code"] = decision.error_code
        self.audit.record(user_id, action, SUBJECT_RESOURCE, resource_id, metadata)
        if not decision.allowed:
            logger.info(
                "Download denied",
                extra={
                    "user_id": user_id,
                    "resource_id": resource_id,
                    "reason": decision.reason,
                    "stage": stage,
                },
            )
