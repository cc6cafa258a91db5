import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from . import config
from .credentials import default_store
from .pipeline import ProductionOrchestrator, SessionStore, production_router, settings_router

logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)


def create_app(orchestrator: ProductionOrchestrator | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "orchestrator", None) is None:
            app.state.orchestrator = ProductionOrchestrator(SessionStore(default_store()))
        logger.info("Production studio ready")
        yield
        logger.info("Production studio shutting down")

    app = FastAPI(title="AFF-GEN Production Studio", lifespan=lifespan)
    app.state.orchestrator = orchestrator
    app.include_router(settings_router)
    app.include_router(production_router)

    @app.get("/health")
    def health_check():
        """Verify the service is up and whether keys are configured."""
        orch = app.state.orchestrator
        return {
            "status": "ok",
            "configured": orch.session.configured() if orch else {},
        }

    return app


app = create_app()


def run():
    uvicorn.run("adgen.main:app", host="0.0.0.0", port=config.PORT)


if __name__ == "__main__":
    run()
