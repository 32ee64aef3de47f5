from marketplace_core.api.routes.downloads import router as downloads_router
from marketplace_core.api.routes.membership import router as membership_router

__all__ = ["downloads_router", "membership_router"]
