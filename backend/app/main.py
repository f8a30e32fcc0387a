"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import artifacts_router, router
from app.config import ConverterSettings, load_settings, logger as config_logger
from app.conversion.service import ConversionOrchestrator

logging.getLogger("uvicorn").setLevel(logging.INFO)


def create_app(settings: Optional[ConverterSettings] = None) -> FastAPI:
    """Build the app around one orchestrator configured from `settings` (environment by default)."""
    settings = settings or load_settings()
    orchestrator = ConversionOrchestrator(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config_logger.info("Converter API started (output dir %s)", settings.output_dir)
        yield
        orchestrator.shutdown()
        config_logger.info("Converter API shutting down")

    app = FastAPI(
        title="Image Format Converter API",
        description="Convert an uploaded image to JPEG or PNG and serve the result.",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.orchestrator = orchestrator
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins if settings.cors_origins else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)
    app.include_router(artifacts_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    from app.config import HOST, PORT
    uvicorn.run("app.main:app", host=HOST, port=PORT, reload=True)
