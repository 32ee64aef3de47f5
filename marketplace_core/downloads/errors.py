"""Download flow errors."""


class DownloadError(Exception):
    """Base exception for download flow failures."""


class DownloadDeniedError(DownloadError):
    """The user is not entitled to download the resource."""

    def __init__(self, user_id: str, resource_id: str, reason: str):
        self.user_id = user_id
        self.resource_id = resource_id
        self.reason = reason
        self.error_code = "DOWNLOAD_DENIED"
        super().__init__(f"Download of {resource_id} denied for {user_id}: {reason}")


class InvalidDownloadTokenError(DownloadError):
    """The token is invalid. Deliberately carries no detail."""

    def __init__(self):
        self.error_code = "INVALID_DOWNLOAD_TOKEN"
        super().__init__("Invalid or expired download token")


class ResourceNotFoundError(DownloadError):
    """The resource row or its stored file is missing."""

    def __init__(self, resource_id: str):
        self.resource_id = resource_id
        self.error_code = "RESOURCE_NOT_FOUND"
        super().__init__(f"Resource {resource_id} has no downloadable file")


class DownloadUnavailableError(DownloadError):
    """The resource lookup failed; the download cannot proceed right now."""

    def __init__(self, resource_id: str):
        self.resource_id = resource_id
        self.error_code = "DOWNLOAD_UNAVAILABLE"
        super().__init__(f"Resource {resource_id} could not be loaded")
