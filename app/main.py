import logging

from fastapi import FastAPI

from app.api.routes.health import router as health_router
from app.api.routes.stocks import router as stocks_router
from app.api.routes.auth import router as auth_router
from app.api.routes.portfolio import router as portfolio_router
from app.api.routes.calendar import router as calendar_router
from app.infra.settings import settings


def create_app() -> FastAPI:
    logging.basicConfig(
        level=getattr(logging, settings.divtrack_log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Divtrack Service",
        version="0.1.0",
        description="Dividend tracker: stock search, dividend history analytics, portfolio and calendar.",
    )

    app.include_router(health_router)
    app.include_router(stocks_router)
    app.include_router(auth_router)
    app.include_router(portfolio_router)
    app.include_router(calendar_router)

    @app.get("/", tags=["meta"])
    async def root() -> dict:
        return {"service": "divtrack", "status": "running"}

    return app


app = create_app()
