import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from calchat.config import settings
from calchat.routes import chat, events, health
from calchat.constants import APP_SETTINGS

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s"
)

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title=APP_SETTINGS.APP_NAME,
        version=APP_SETTINGS.VERSION,
        description=APP_SETTINGS.DESCRIPTION
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def startup_event():
        """Validate configuration on startup"""
        from calchat.config import validate_required_keys
        try:
            validate_required_keys()
            logger.info("Configuration validation passed")
        except Exception as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

    @app.on_event("shutdown")
    async def shutdown_event():
        """Cleanup resources on shutdown"""
        logger.info("Shutting down gracefully...")

    @app.get("/")
    async def root():
        return {"message": f"Welcome to {APP_SETTINGS.APP_NAME}"}

    app.include_router(health.router, prefix="/health", tags=["Health"])
    app.include_router(chat.router, prefix="/chat", tags=["Chat"])
    app.include_router(events.router, prefix="/events", tags=["Events"])

    return app


app = create_app()


def main():
    import uvicorn

    uvicorn.run(
        "calchat.main:app",
        host="0.0.0.0",
        port=settings.APP_PORT,
        reload=settings.APP_ENV == "development"
    )


if __name__ == "__main__":
    main()
