from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from finbalance.api.routes import router as api_router
from finbalance.core.config import AppConfig, Settings, get_settings
from finbalance.db.session import init_db

app_config = AppConfig()


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    application = FastAPI(title=settings.app_name, description=app_config.description, version=app_config.version)

    # the webhook is called by Evolution and the dashboard from any origin
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(api_router)

    @application.on_event("startup")
    async def on_startup() -> None:
        logger.info("Starting {}", settings.app_name, version=app_config.version, timezone=settings.timezone)
        await init_db(settings)

    @application.get("/")
    async def root():
        return {"message": f"{settings.app_name} up", "version": app_config.version}

    return application


app = create_app()
