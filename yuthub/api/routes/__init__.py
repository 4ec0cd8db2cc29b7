from yuthub.api.routes.admin import router as admin_router
from yuthub.api.routes.billing import router as billing_router
from yuthub.api.routes.organizations import router as organizations_router
from yuthub.api.routes.properties import router as properties_router
from yuthub.api.routes.residents import router as residents_router
from yuthub.api.routes.webhooks import router as webhooks_router

__all__ = [
    "admin_router",
    "billing_router",
    "organizations_router",
    "properties_router",
    "residents_router",
    "webhooks_router",
]
