from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import asyncpg
import httpx
import logging

from app.api import routers
from app.core.config import settings
from app.db.directory import build_directory
from app.services.chat_service import build_providers, close_providers
from app.services.sms_service import TwilioSMSSender

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logging.getLogger("httpx").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting %s (%s)", settings.APP_NAME, settings.ENVIRONMENT)
    directory = build_directory(settings)
    await directory.connect()
    http_client = httpx.AsyncClient(timeout=15)

    app.state.directory = directory
    app.state.sms_sender = TwilioSMSSender.from_settings(http_client, settings)
    app.state.llm_providers = build_providers(settings)

    logger.info(
        "Directory: %s | SMS: %s | AI providers: %s",
        directory.name,
        "twilio" if app.state.sms_sender else "not configured",
        ", ".join(app.state.llm_providers) or "none",
    )
    try:
        yield
    finally:
        await close_providers(app.state.llm_providers)
        await http_client.aclose()
        await directory.close()
        logger.info("Shutting down %s", settings.APP_NAME)


app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Personal assistant backend: authentication, tasks and AI chat",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(routers.router)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ())[1:]) or "body"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": {"error": "validation_error", "message": f"{field}: {first.get('msg', 'invalid')}"}},
    )


@app.exception_handler(asyncpg.PostgresError)
@app.exception_handler(asyncpg.InterfaceError)
async def database_exception_handler(request: Request, exc: Exception):
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": {"error": "database_unavailable", "message": "Database is unavailable."}},
    )


@app.get("/")
async def root():
    return {"message": f"Welcome to {settings.APP_NAME} API"}
