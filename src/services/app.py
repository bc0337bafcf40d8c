"""
Aplicación principal FastAPI del motor de autoevaluación.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import get_settings
from src.models.factory import ModelFactory
from src.services.dependencies import current_agent
from src.services.routers import incidents, self_evaluation
from src.utils.logging import get_logger
from src.utils.metrics import get_metrics

logger = get_logger(__name__)
settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Ciclo de vida de la aplicación."""
    logger.info("service_starting")
    yield
    agent = current_agent()
    if agent is not None:
        await agent.escalation.drain()
    await ModelFactory.cleanup_all()
    logger.info("service_stopped")


def create_app() -> FastAPI:
    """Crea y configura la aplicación FastAPI."""
    app = FastAPI(
        title="Self-Evaluation Engine API",
        description="API de diálogos de autoevaluación con escalado de seguridad",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Configurar CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # En producción restringir esto
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Incluir routers
    app.include_router(self_evaluation.router, prefix="/self-evaluation", tags=["Self-evaluation"])
    app.include_router(incidents.router, prefix="/review", tags=["Incidents"])

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "version": "0.1.0"}

    @app.get("/metrics")
    async def metrics():
        return get_metrics().get_all_metrics()

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "src.services.app:app",
        host=settings.service.host,
        port=settings.service.port,
        reload=settings.debug,
    )
