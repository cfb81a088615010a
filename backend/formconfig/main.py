from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from formconfig import __version__
from formconfig.api import form_config, health
from formconfig.core.config import settings, logger
from formconfig.core.exceptions import FormConfigError
from formconfig.core.middleware import (
    RequestContextMiddleware,
    form_config_exception_handler,
    global_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from formconfig.db.database import async_session, create_tables
from formconfig.services.form_config import FormConfigurationService


async def seed_default_configuration():
    """Seed the built-in form configuration and default template if none exists"""
    async with async_session() as db:
        config = await FormConfigurationService(db).seed_default()
        await db.commit()
        logger.info(f"Default form configuration ready: id={config.id} version={config.version}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await create_tables()
    if settings.SEED_DEFAULT_CONFIGURATION and not settings.TESTING:
        await seed_default_configuration()
    yield


app = FastAPI(
    title="Form Configuration API",
    description="Versioned form schemas with draft/publish/rollback and live rendering",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestContextMiddleware)

app.add_exception_handler(FormConfigError, form_config_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.include_router(health.router, prefix="", tags=["Health"])
app.include_router(form_config.router)
