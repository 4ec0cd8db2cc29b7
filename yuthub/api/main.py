import logging

from fastapi import FastAPI

from yuthub.api.middleware import organization_context_middleware
from yuthub.api.routes.admin import router as admin_router
from yuthub.api.routes.billing import router as billing_router
from yuthub.api.routes.organizations import router as organizations_router
from yuthub.api.routes.properties import router as properties_router
from yuthub.api.routes.residents import router as residents_router
from yuthub.api.routes.webhooks import router as webhooks_router
from yuthub.core.config import settings
from yuthub.core.errors import register_exception_handlers

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="YUTHUB Platform API")
app.middleware("http")(organization_context_middleware)
register_exception_handlers(app)
app.include_router(organizations_router, prefix="/api")
app.include_router(residents_router, prefix="/api")
app.include_router(properties_router, prefix="/api")
app.include_router(billing_router, prefix="/api")
app.include_router(admin_router, prefix="/api")
app.include_router(webhooks_router, prefix="/api")


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    return {"status": "ok"}
